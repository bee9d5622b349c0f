import asyncio
import typing as t
from datetime import datetime, timezone

import pytest

from logweave.channels import ChannelReply, MessageChannel


class FakeChannel(MessageChannel):
    """Records every request and answers with scripted reply bodies.

    Replies are consumed in order; once exhausted every request is answered
    with ``{"status": "ok"}``. A ``more-exist`` reply carries a continuation
    that issues the next request to the same address.
    """

    def __init__(self, replies: t.Iterable[dict] = ()):
        self.requests: list[tuple[str, dict]] = []
        self._replies = list(replies)

    async def request(self, address: str, payload: dict) -> ChannelReply:
        self.requests.append((address, payload))
        await asyncio.sleep(0)
        body = self._replies.pop(0) if self._replies else {"status": "ok"}

        continuation = None
        if body.get("status") == "more-exist":

            async def continuation(extra: dict) -> ChannelReply:
                return await self.request(address, extra)

        return ChannelReply(body=body, continuation=continuation)

    @property
    def payloads(self) -> list[dict]:
        return [payload for _, payload in self.requests]


class StampSequence:
    """Timestamp callable handing out predefined datetimes."""

    def __init__(self, *stamps: datetime):
        self._stamps = list(stamps)

    def __call__(self) -> datetime:
        return self._stamps.pop(0)


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def log_dir(tmp_path):
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def stamps() -> list[datetime]:
    """Three ordered timestamps one hour apart (t1 < t2 < t3)."""
    return [
        datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
        datetime(2024, 5, 1, 11, 0, tzinfo=timezone.utc),
        datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    ]
