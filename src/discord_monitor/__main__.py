"""Application entry point for discord_monitor."""

import argparse
import asyncio
import signal
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from discord_monitor.application.handlers.event_handlers import build_registry
from discord_monitor.application.services.command_executor import CommandExecutor
from discord_monitor.application.services.command_service import CommandService
from discord_monitor.application.services.connection_manager import ConnectionManager
from discord_monitor.application.services.event_router import EventRouter
from discord_monitor.application.services.query_service import QueryService
from discord_monitor.application.services.retention_sweeper import RetentionSweeper
from discord_monitor.application.services.topology_sync import TopologySync
from discord_monitor.config import (
    AppConfig,
    ConfigError,
    ConfigFileNotFoundError,
    load_config,
)
from discord_monitor.domain.entities.event import Event
from discord_monitor.domain.exceptions import UpstreamConnectionError
from discord_monitor.domain.gateway import ChatGateway
from discord_monitor.domain.repositories.repository import Repository
from discord_monitor.infrastructure import EventQueue
from discord_monitor.infrastructure.gateway import DiscordGateway
from discord_monitor.infrastructure.logging import get_logger, setup_logging
from discord_monitor.infrastructure.persistence import create_repository
from discord_monitor.presentation.http.server import HTTPServer

# Shutdown timeout in seconds
SHUTDOWN_TIMEOUT = 30


@dataclass
class Components:
    """Wired application components."""

    repository: Repository
    event_queue: EventQueue
    gateway: ChatGateway
    sweeper: RetentionSweeper
    connection: ConnectionManager
    router: EventRouter
    queries: QueryService
    commands: CommandService
    http_server: HTTPServer


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="discord_monitor - Discord message monitoring bot"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    return parser.parse_args(args)


def build_components(
    config: AppConfig,
    gateway_factory: Callable[[EventQueue], ChatGateway] | None = None,
) -> Components:
    """Wire every component from configuration.

    Args:
        config: Application configuration.
        gateway_factory: Builds the gateway from the event queue. Defaults to
            a DiscordGateway.

    Returns:
        The wired components.
    """
    repository = create_repository(config.database, get_logger("repository"))
    event_queue = EventQueue()
    if gateway_factory is None:
        gateway: ChatGateway = DiscordGateway(event_queue, get_logger("gateway"))
    else:
        gateway = gateway_factory(event_queue)

    sweeper = RetentionSweeper(repository, get_logger("sweeper"))
    connection = ConnectionManager(
        gateway, repository, sweeper, get_logger("connection")
    )

    executor = CommandExecutor(repository, connection.get_uptime)
    commands = CommandService(
        executor,
        repository,
        lambda: connection.is_ready,
        get_logger("commands"),
    )
    queries = QueryService(repository, connection)

    topology = TopologySync(gateway, repository, get_logger("topology"))
    registry = build_registry(
        gateway, repository, topology, commands, get_logger("handlers")
    )
    router = EventRouter(registry, get_logger("router"))

    http_server = HTTPServer(
        config=config.server,
        queries=queries,
        commands=commands,
        logger=get_logger("http_server"),
    )

    return Components(
        repository=repository,
        event_queue=event_queue,
        gateway=gateway,
        sweeper=sweeper,
        connection=connection,
        router=router,
        queries=queries,
        commands=commands,
        http_server=http_server,
    )


async def run_main_loop(
    event_queue: EventQueue,
    router: EventRouter,
    shutdown_event: asyncio.Event,
    running_check: Callable[[], bool],
    logger: BoundLogger,
) -> None:
    """Run the main event processing loop.

    Args:
        event_queue: EventQueue instance for retrieving events.
        router: EventRouter instance for processing events.
        shutdown_event: Event that signals shutdown.
        running_check: Callable that returns whether the loop should continue.
        logger: Logger instance.
    """
    while running_check():
        dequeue_task = asyncio.create_task(event_queue.dequeue())
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        try:
            done, pending = await asyncio.wait(
                [dequeue_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            if dequeue_task in done:
                event = dequeue_task.result()
                await _process_event(event, router, event_queue, logger)

            if shutdown_task in done:
                break

        except asyncio.CancelledError:
            dequeue_task.cancel()
            shutdown_task.cancel()
            try:
                await dequeue_task
            except asyncio.CancelledError:
                pass
            try:
                await shutdown_task
            except asyncio.CancelledError:
                pass
            raise


async def _process_event(
    event: Event,
    router: EventRouter,
    event_queue: EventQueue,
    logger: BoundLogger,
) -> None:
    """Process a single event; a failure never stops the loop.

    Args:
        event: Event to process.
        router: EventRouter instance.
        event_queue: EventQueue instance for marking done.
        logger: Logger instance.
    """
    try:
        await router.process(event)
    except Exception as e:
        logger.error("Error processing event", event_id=event.id, error=str(e))
    finally:
        event_queue.mark_done(event)


async def _connect(
    config: AppConfig, connection: ConnectionManager, logger: BoundLogger
) -> None:
    if config.discord is None:
        logger.warning("No Discord token configured, running in degraded mode")
        return
    try:
        await connection.start(config.discord.token)
    except UpstreamConnectionError as e:
        logger.error("Discord connection failed, running in degraded mode", error=str(e))


async def _shutdown(components: Components, logger: BoundLogger) -> None:
    await components.connection.stop()
    await components.http_server.stop()
    await components.repository.close()


async def main_async(
    config_path: Path,
    shutdown_timeout: float = SHUTDOWN_TIMEOUT,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file.
        shutdown_timeout: Maximum time in seconds to wait for graceful shutdown.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    # 1. Load configuration
    config = load_config(config_path)

    # 2. Initialize logging
    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Starting discord_monitor", config_path=str(config_path))

    # 3. Initialize components
    components = build_components(config)
    await components.repository.initialize()

    # 4. Setup shutdown handling
    running = True
    shutdown_event = asyncio.Event()

    def is_running() -> bool:
        return running

    def signal_handler(sig: signal.Signals) -> None:
        nonlocal running
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        running = False
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        # 5. Start HTTP server and the Discord connection
        await components.http_server.start()
        await _connect(config, components.connection, logger)
        logger.info("discord_monitor started successfully")

        # 6. Run main loop
        await run_main_loop(
            event_queue=components.event_queue,
            router=components.router,
            shutdown_event=shutdown_event,
            running_check=is_running,
            logger=logger,
        )

    except asyncio.CancelledError:
        logger.info("Main loop cancelled")

    finally:
        # 7. Shutdown
        logger.info("Shutting down")
        try:
            await asyncio.wait_for(
                _shutdown(components, logger), timeout=shutdown_timeout
            )
            logger.info("discord_monitor stopped")
        except TimeoutError:
            logger.warning(
                "Shutdown timed out, forcing termination",
                timeout_seconds=shutdown_timeout,
            )

    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = args.config

    try:
        exit_code = asyncio.run(main_async(config_path))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
