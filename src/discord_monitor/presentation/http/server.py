"""HTTP API for the monitoring dashboard."""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from aiohttp import web

from discord_monitor.application.services.command_service import CommandService
from discord_monitor.application.services.query_service import QueryService
from discord_monitor.config.models import ServerConfig
from discord_monitor.domain.exceptions import (
    CommandError,
    StorageError,
    UpstreamConnectionError,
)

DEFAULT_MESSAGE_LIMIT = 10
DEFAULT_LOG_LIMIT = 100

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class InvalidQueryError(ValueError):
    """A query string parameter could not be parsed."""


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _int_param(request: web.Request, name: str, default: int) -> int:
    """Parse a non-negative integer query parameter.

    Raises:
        InvalidQueryError: If the value is not a non-negative integer.
    """
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid {name}: {raw}") from e
    if value < 0:
        raise InvalidQueryError(f"Invalid {name}: {raw}")
    return value


def _str_param(request: web.Request, name: str) -> str | None:
    value = request.query.get(name)
    return value or None


class HTTPServer:
    """HTTP server exposing the query and command API.

    This server provides endpoints for:
    - GET /healthz: Liveness probe
    - GET /api/status, /api/servers, /api/channels, /api/messages,
      /api/stats, /api/logs: Read views
    - POST /api/execute-command: Run a ``!`` command

    Args:
        config: Server configuration containing host and port.
        queries: Query service backing the read endpoints.
        commands: Command service backing command execution.
        logger: Structured logger for logging.
    """

    def __init__(
        self,
        config: ServerConfig,
        queries: QueryService,
        commands: CommandService,
        logger: structlog.BoundLogger,
    ) -> None:
        self.config = config
        self._queries = queries
        self._commands = commands
        self._logger = logger
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the server is running."""
        return self._site is not None

    @property
    def actual_port(self) -> int:
        """Return the actual port the server is listening on.

        Raises:
            RuntimeError: If the server is not running.
        """
        if self._site is None:
            raise RuntimeError("Server is not running")
        server = getattr(self._site, "_server", None)
        if server is None:
            raise RuntimeError("Server is not running")
        sockets = getattr(server, "sockets", None)
        if sockets:
            return sockets[0].getsockname()[1]
        raise RuntimeError("No sockets available")

    def create_app(self) -> web.Application:
        """Create and return the aiohttp Application.

        Returns:
            Configured aiohttp Application.
        """
        app = web.Application(middlewares=[self._error_middleware])
        app.router.add_get("/healthz", self._handle_health_check)
        app.router.add_get("/api/status", self._handle_status)
        app.router.add_get("/api/servers", self._handle_servers)
        app.router.add_get("/api/channels", self._handle_channels)
        app.router.add_get("/api/messages", self._handle_messages)
        app.router.add_get("/api/stats", self._handle_stats)
        app.router.add_get("/api/logs", self._handle_logs)
        app.router.add_post("/api/execute-command", self._handle_execute_command)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()
        self._logger.info(
            "HTTP server started",
            host=self.config.host,
            port=self.actual_port,
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None
            self._logger.info("HTTP server stopped")

    @web.middleware
    async def _error_middleware(
        self, request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        """Map domain failures to JSON error responses."""
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except InvalidQueryError as e:
            return _error(str(e), 400)
        except CommandError as e:
            return _error(str(e), 400)
        except UpstreamConnectionError as e:
            return _error(str(e), 503)
        except StorageError as e:
            self._logger.error("Storage failure", path=request.path, error=str(e))
            return _error("Storage unavailable", 500)
        except Exception as e:
            self._logger.error(
                "Unhandled error",
                path=request.path,
                error=str(e),
                exc_info=True,
            )
            return _error("Internal server error", 500)

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_status(self, request: web.Request) -> web.Response:
        return web.json_response(await self._queries.get_status())

    async def _handle_servers(self, request: web.Request) -> web.Response:
        return web.json_response(await self._queries.get_servers())

    async def _handle_channels(self, request: web.Request) -> web.Response:
        server_id = _str_param(request, "serverId")
        return web.json_response(await self._queries.get_channels(server_id))

    async def _handle_messages(self, request: web.Request) -> web.Response:
        """Handle GET /api/messages.

        Query parameters: serverId, channelId, search, limit (default 10)
        and offset (default 0).
        """
        page = await self._queries.get_messages(
            server_id=_str_param(request, "serverId"),
            channel_id=_str_param(request, "channelId"),
            search=_str_param(request, "search"),
            limit=_int_param(request, "limit", DEFAULT_MESSAGE_LIMIT),
            offset=_int_param(request, "offset", 0),
        )
        return web.json_response(page)

    async def _handle_stats(self, request: web.Request) -> web.Response:
        return web.json_response(await self._queries.get_stats())

    async def _handle_logs(self, request: web.Request) -> web.Response:
        limit = _int_param(request, "limit", DEFAULT_LOG_LIMIT)
        return web.json_response(await self._queries.get_logs(limit))

    async def _handle_execute_command(self, request: web.Request) -> web.Response:
        """Handle POST /api/execute-command.

        Args:
            request: The incoming request with a ``{"command": str}`` body.

        Returns:
            JSON response with the command response, or an error message.
        """
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error("Invalid JSON", 400)

        if not isinstance(body, dict) or not isinstance(body.get("command"), str):
            return _error("Missing required field: command", 400)

        command = body["command"]
        response = await self._commands.execute(command)
        self._logger.info("Command executed", command=command)
        return web.json_response({"response": response})
