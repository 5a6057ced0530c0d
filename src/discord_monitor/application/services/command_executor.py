"""Text command execution."""

import re
from collections.abc import Awaitable, Callable

from jinja2 import Template

from discord_monitor.domain.constants import RETENTION_DAYS
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.exceptions import InvalidCommandError, UnknownCommandError
from discord_monitor.domain.formatting import format_timestamp
from discord_monitor.domain.repositories.repository import Repository

DEFAULT_MESSAGE_COUNT = 5
MAX_MESSAGE_COUNT = 20
PREVIEW_LENGTH = 100

CHANNEL_MENTION_PATTERN = re.compile(r"^<#(\d+)>$")

HELP_TEXT = "\n".join(
    [
        "**Available Commands:**",
        "`!messages [channel] [count]` - Get recent messages",
        "`!stats` - Display message statistics",
        "`!help` - Show command list",
        "`!clear [days]` - Clear message logs older than X days",
    ]
)

MESSAGES_TEMPLATE = Template(
    "**Recent Messages from {{ channel_name }}** "
    "(Showing {{ shown }} of {{ total }} messages):\n\n{{ body }}"
)

MESSAGE_LINE_TEMPLATE = Template(
    "**{{ message.author_username }}** ({{ timestamp }}): {{ preview }}"
)

STATS_TEMPLATE = Template(
    "\n".join(
        [
            "**Bot Statistics:**",
            "Status: {{ 'Online' if status.is_online else 'Offline' }}",
            "Uptime: {{ uptime }}",
            "Monitoring {{ status.servers_count }} servers "
            "and {{ status.channels_count }} channels",
            "Total Messages: {{ status.messages_count }}",
            "Storage Usage: {{ status.storage_usage }} KB",
        ]
    )
)

CLEAR_TEMPLATE = Template("Cleared {{ deleted }} messages older than {{ days }} days.")

NO_MESSAGES_TEXT = "No messages found with the given criteria."
UNKNOWN_COMMAND_TEXT = "Unknown command. Type !help for a list of commands"


def parse_command(command_line: str) -> tuple[str, list[str]]:
    """Split a command line into a lower-cased verb and its arguments.

    Raises:
        InvalidCommandError: If the line is empty.
    """
    parts = command_line.split()
    if not parts:
        raise InvalidCommandError("Command is empty")
    return parts[0].lower(), parts[1:]


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def _preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


class CommandExecutor:
    """Dispatches ``!`` commands against the repository.

    Args:
        repository: Repository to read from and purge.
        uptime: Returns the current formatted connection uptime.
    """

    def __init__(self, repository: Repository, uptime: Callable[[], str]) -> None:
        self._repository = repository
        self._uptime = uptime
        self._commands: dict[str, Callable[[list[str]], Awaitable[str]]] = {
            "!help": self._help,
            "!messages": self._messages,
            "!stats": self._stats,
            "!clear": self._clear,
        }

    @property
    def verbs(self) -> list[str]:
        """Return the recognized command verbs."""
        return list(self._commands)

    async def execute(self, command_line: str) -> str:
        """Execute a command line and return the response text.

        Raises:
            InvalidCommandError: If the line is empty.
            UnknownCommandError: If the verb is not recognized.
        """
        verb, args = parse_command(command_line)
        command = self._commands.get(verb)
        if command is None:
            raise UnknownCommandError(UNKNOWN_COMMAND_TEXT)
        return await command(args)

    async def _help(self, args: list[str]) -> str:
        return HELP_TEXT

    async def _messages(self, args: list[str]) -> str:
        """``!messages [<#channel>] [count]``.

        The count defaults to 5 and is clamped to 1..20. A numeric first
        argument is taken as the count.
        """
        channel_id: str | None = None
        count = DEFAULT_MESSAGE_COUNT

        remaining = list(args)
        if remaining:
            match = CHANNEL_MENTION_PATTERN.match(remaining[0])
            if match:
                channel_id = match.group(1)
                remaining.pop(0)
        if remaining:
            requested = _parse_int(remaining[0])
            if requested is not None:
                count = max(1, min(MAX_MESSAGE_COUNT, requested))

        page = await self._repository.get_messages(channel_id=channel_id, limit=count)
        if not page.messages:
            return NO_MESSAGES_TEXT

        channel_name = "all channels"
        if channel_id:
            channel = await self._repository.get_channel(channel_id)
            if channel is not None:
                channel_name = f"#{channel.name}"

        return MESSAGES_TEMPLATE.render(
            channel_name=channel_name,
            shown=len(page.messages),
            total=page.total,
            body="\n\n".join(self._format_message(m) for m in page.messages),
        )

    @staticmethod
    def _format_message(message: Message) -> str:
        return MESSAGE_LINE_TEMPLATE.render(
            message=message,
            timestamp=format_timestamp(message.created_at),
            preview=_preview(message.content),
        )

    async def _stats(self, args: list[str]) -> str:
        status = await self._repository.get_bot_status()
        return STATS_TEMPLATE.render(status=status, uptime=self._uptime())

    async def _clear(self, args: list[str]) -> str:
        """``!clear [days]``.

        The days argument is echoed back, but deletion always applies the
        fixed retention window.
        """
        days = RETENTION_DAYS
        if args:
            requested = _parse_int(args[0])
            if requested is not None:
                days = requested

        deleted = await self._repository.delete_old_messages()
        return CLEAR_TEMPLATE.render(deleted=deleted, days=days)
