"""Contract tests run against both MemoryRepository and SqlRepository."""

import asyncio
from datetime import datetime, timedelta

import pytest

from discord_monitor.domain.constants import COMMAND_LOG_LIMIT
from discord_monitor.domain.entities.bot_status import BotStatusUpdate
from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.command_log import CommandLog
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.entities.user import User
from discord_monitor.domain.repositories.repository import Repository


def make_message(
    message_id: str,
    created_at: datetime,
    server_id: str = "S1",
    channel_id: str = "C1",
    author: str = "alice",
    content: str = "hello",
) -> Message:
    return Message(
        id=message_id,
        server_id=server_id,
        channel_id=channel_id,
        author_id="U1",
        author_username=author,
        content=content,
        created_at=created_at,
    )


class TestServersAndChannels:
    async def test_create_server_is_upsert(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_server(Server(id="S1", name="Old", joined_at=now))
        await repository.create_server(
            Server(id="S1", name="New", icon="https://cdn/icon.png", joined_at=now)
        )

        servers = await repository.get_servers()
        assert [s.name for s in servers] == ["New"]
        assert servers[0].icon == "https://cdn/icon.png"
        assert (await repository.get_bot_status()).servers_count == 1

    async def test_get_server_missing_returns_none(self, repository: Repository) -> None:
        assert await repository.get_server("nope") is None

    async def test_channels_filtered_by_server(self, repository: Repository) -> None:
        await repository.create_channel(
            Channel(id="C1", server_id="S1", name="general", type="text")
        )
        await repository.create_channel(
            Channel(id="C2", server_id="S1", name="announcements", type="news")
        )
        await repository.create_channel(
            Channel(id="C3", server_id="S2", name="random", type="text")
        )

        s1 = await repository.get_channels("S1")
        assert [c.id for c in s1] == ["C2", "C1"]
        assert len(await repository.get_channels()) == 3
        assert (await repository.get_bot_status()).channels_count == 3

    async def test_create_channel_updates_name(self, repository: Repository) -> None:
        await repository.create_channel(
            Channel(id="C1", server_id="S1", name="general", type="text")
        )
        await repository.create_channel(
            Channel(id="C1", server_id="S1", name="lobby", type="text")
        )

        channel = await repository.get_channel("C1")
        assert channel is not None
        assert channel.name == "lobby"
        assert (await repository.get_bot_status()).channels_count == 1


class TestMessages:
    async def test_create_message_is_idempotent(
        self, repository: Repository, now: datetime
    ) -> None:
        first = make_message("M1", now, content="original")
        await repository.create_message(first)
        stored = await repository.create_message(make_message("M1", now, content="changed"))

        assert stored.content == "original"
        page = await repository.get_messages()
        assert page.total == 1
        status = await repository.get_bot_status()
        assert status.messages_count == 1
        assert status.storage_usage == 1

    async def test_get_message(self, repository: Repository, now: datetime) -> None:
        await repository.create_message(make_message("M1", now))

        message = await repository.get_message("M1")
        assert message is not None
        assert message.author_username == "alice"
        assert await repository.get_message("M2") is None

    async def test_messages_newest_first_with_pagination(
        self, repository: Repository, now: datetime
    ) -> None:
        for i in range(8):
            await repository.create_message(
                make_message(f"M{i}", now - timedelta(minutes=i))
            )

        first = await repository.get_messages(limit=5)
        second = await repository.get_messages(limit=5, offset=5)

        assert first.total == 8
        assert second.total == 8
        assert [m.id for m in first.messages] == ["M0", "M1", "M2", "M3", "M4"]
        assert [m.id for m in second.messages] == ["M5", "M6", "M7"]

    async def test_filters_by_server_and_channel(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("M1", now, channel_id="C1"))
        await repository.create_message(
            make_message("M2", now - timedelta(seconds=1), channel_id="C2")
        )
        await repository.create_message(make_message("M3", now, server_id="S2", channel_id="C9"))

        by_server = await repository.get_messages(server_id="S1")
        assert {m.id for m in by_server.messages} == {"M1", "M2"}

        by_channel = await repository.get_messages(server_id="S1", channel_id="C2")
        assert [m.id for m in by_channel.messages] == ["M2"]
        assert by_channel.total == 1

    async def test_search_matches_content_or_author_case_insensitively(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("M1", now, content="Deploy DONE"))
        await repository.create_message(
            make_message("M2", now, author="DoneBot", content="beep")
        )
        await repository.create_message(make_message("M3", now, content="unrelated"))

        page = await repository.get_messages(search="done")

        assert {m.id for m in page.messages} == {"M1", "M2"}
        assert page.total == 2

    async def test_search_treats_wildcards_literally(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("M1", now, content="100% done"))
        await repository.create_message(make_message("M2", now, content="1000 done"))

        page = await repository.get_messages(search="0%")

        assert [m.id for m in page.messages] == ["M1"]

    async def test_empty_page(self, repository: Repository) -> None:
        page = await repository.get_messages(channel_id="missing")
        assert page.messages == []
        assert page.total == 0

    async def test_created_at_round_trips_as_utc(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("M1", now))

        message = await repository.get_message("M1")
        assert message is not None
        assert message.created_at == now
        assert message.created_at.tzinfo is not None


class TestRetention:
    async def test_deletes_only_messages_older_than_window(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("old", now - timedelta(days=15)))
        await repository.create_message(
            make_message("edge", now - timedelta(days=14, seconds=1))
        )
        await repository.create_message(make_message("recent", now - timedelta(days=13)))

        deleted = await repository.delete_old_messages()

        assert deleted == 2
        page = await repository.get_messages()
        assert [m.id for m in page.messages] == ["recent"]
        status = await repository.get_bot_status()
        assert status.messages_count == 1
        assert status.storage_usage == 1

    async def test_message_exactly_at_cutoff_is_kept(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_message(make_message("boundary", now - timedelta(days=14)))

        assert await repository.delete_old_messages() == 0
        assert await repository.get_message("boundary") is not None

    async def test_nothing_to_delete(self, repository: Repository, now: datetime) -> None:
        await repository.create_message(make_message("M1", now))

        assert await repository.delete_old_messages() == 0
        assert (await repository.get_bot_status()).messages_count == 1

    async def test_counts_stay_consistent_under_concurrent_writes(
        self, repository: Repository, now: datetime
    ) -> None:
        await asyncio.gather(
            *(
                repository.create_message(
                    make_message(f"M{i}", now - timedelta(days=20 if i % 2 else 1))
                )
                for i in range(10)
            ),
            repository.delete_old_messages(),
        )
        await repository.delete_old_messages()

        status = await repository.get_bot_status()
        page = await repository.get_messages()
        assert status.messages_count == page.total == 5


class TestScenario:
    async def test_server_with_two_channels(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.create_server(Server(id="S1", name="Guild", joined_at=now))
        await repository.create_channel(
            Channel(id="C1", server_id="S1", name="general", type="text")
        )
        await repository.create_channel(
            Channel(id="C2", server_id="S1", name="dev", type="text")
        )
        for i in range(3):
            await repository.create_message(
                make_message(f"C1-{i}", now - timedelta(minutes=i), channel_id="C1")
            )
        for i in range(2):
            await repository.create_message(
                make_message(f"C2-{i}", now - timedelta(minutes=10 + i), channel_id="C2")
            )

        status = await repository.get_bot_status()
        assert (status.servers_count, status.channels_count, status.messages_count) == (
            1,
            2,
            5,
        )

        channel_page = await repository.get_messages(server_id="S1", channel_id="C1")
        assert [m.id for m in channel_page.messages] == ["C1-0", "C1-1", "C1-2"]
        assert channel_page.total == 3

        server_page = await repository.get_messages(server_id="S1")
        assert len(server_page.messages) == 5
        assert server_page.total == 5
        assert [m.id for m in server_page.messages] == [
            "C1-0",
            "C1-1",
            "C1-2",
            "C2-0",
            "C2-1",
        ]


class TestBotStatus:
    async def test_initial_status(self, repository: Repository) -> None:
        status = await repository.get_bot_status()

        assert status.is_online is False
        assert status.uptime_started is None
        assert status.messages_count == 0

    async def test_partial_update_keeps_other_fields(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.update_bot_status(
            BotStatusUpdate(is_online=True, uptime_started=now)
        )
        await repository.update_bot_status(BotStatusUpdate(servers_count=3))

        status = await repository.get_bot_status()
        assert status.is_online is True
        assert status.uptime_started == now
        assert status.servers_count == 3

    async def test_update_can_clear_uptime(
        self, repository: Repository, now: datetime
    ) -> None:
        await repository.update_bot_status(
            BotStatusUpdate(is_online=True, uptime_started=now)
        )
        await repository.update_bot_status(
            BotStatusUpdate(is_online=False, uptime_started=None)
        )

        status = await repository.get_bot_status()
        assert status.is_online is False
        assert status.uptime_started is None


class TestCommandLogs:
    async def test_newest_first_with_limit(
        self, repository: Repository, now: datetime
    ) -> None:
        for i in range(3):
            await repository.create_command_log(
                CommandLog(
                    command=f"!cmd{i}",
                    response="ok",
                    executed_at=now + timedelta(seconds=i),
                )
            )

        logs = await repository.get_command_logs(limit=2)

        assert [log.command for log in logs] == ["!cmd2", "!cmd1"]
        assert all(log.id is not None for log in logs)

    async def test_same_timestamp_ordered_by_id(
        self, repository: Repository, now: datetime
    ) -> None:
        first = await repository.create_command_log(
            CommandLog(command="!first", response="ok", executed_at=now)
        )
        second = await repository.create_command_log(
            CommandLog(command="!second", response="ok", executed_at=now)
        )

        logs = await repository.get_command_logs()

        assert [log.command for log in logs] == ["!second", "!first"]
        assert second.id is not None and first.id is not None
        assert second.id > first.id

    async def test_keeps_only_newest_entries(
        self, repository: Repository, now: datetime
    ) -> None:
        for i in range(COMMAND_LOG_LIMIT + 5):
            await repository.create_command_log(
                CommandLog(
                    command=f"!cmd{i}",
                    response="ok",
                    executed_at=now + timedelta(seconds=i),
                )
            )

        logs = await repository.get_command_logs(limit=COMMAND_LOG_LIMIT + 100)

        assert len(logs) == COMMAND_LOG_LIMIT
        assert logs[0].command == f"!cmd{COMMAND_LOG_LIMIT + 4}"
        assert logs[-1].command == "!cmd5"


class TestUsers:
    async def test_create_and_lookup(self, repository: Repository) -> None:
        user = await repository.create_user(User(username="admin", password_hash="x"))

        assert user.id is not None
        assert await repository.get_user(user.id) is not None
        found = await repository.get_user_by_username("admin")
        assert found is not None
        assert found.id == user.id

    async def test_create_user_is_idempotent_on_username(
        self, repository: Repository
    ) -> None:
        first = await repository.create_user(User(username="admin", password_hash="x"))
        second = await repository.create_user(User(username="admin", password_hash="y"))

        assert second.id == first.id
        assert second.password_hash == "x"

    async def test_unknown_user(self, repository: Repository) -> None:
        assert await repository.get_user(42) is None
        assert await repository.get_user_by_username("ghost") is None


@pytest.mark.parametrize("limit", [0, 1])
async def test_limit_bounds(repository: Repository, now: datetime, limit: int) -> None:
    await repository.create_message(make_message("M1", now))
    await repository.create_message(make_message("M2", now - timedelta(seconds=1)))

    page = await repository.get_messages(limit=limit)

    assert len(page.messages) == limit
    assert page.total == 2
