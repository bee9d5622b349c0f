"""
MailTransport unit tests.
"""

from __future__ import annotations

import threading

import pytest

from conftest import FakeChannel
from logweave.errors import ConfigurationError, TransportIOError
from logweave.logger import Logger
from logweave.transports import MailTransport


def _mail(channel: FakeChannel, **options) -> MailTransport:
    defaults = {
        "address": "mailer",
        "channel": channel,
        "sender": "logger@example.com",
        "to": "ops@example.com",
        "timestamp_fn": lambda: "2024-05-01T10:00:00+00:00",
    }
    defaults.update(options)
    return MailTransport(**defaults)


class TestMailConfiguration:
    def test_address_required(self, channel) -> None:
        with pytest.raises(ConfigurationError):
            MailTransport(channel=channel)

    def test_channel_required(self) -> None:
        with pytest.raises(ConfigurationError):
            MailTransport(address="mailer")

    def test_not_queryable(self, channel) -> None:
        assert _mail(channel).supports_query is False


class TestMailLogging:
    async def test_email_sent_to_mailer(self, channel) -> None:
        transport = _mail(channel)

        await transport.log("error", "disk full", {"host": "db1"})

        address, email = channel.requests[0]
        assert address == "mailer"
        assert email["from"] == "logger@example.com"
        assert email["to"] == "ops@example.com"
        assert "cc" not in email
        assert email["subject"] == "mail [error]: disk full"
        assert "Level     : error" in email["body"]
        assert "Date/Time : 2024-05-01T10:00:00+00:00" in email["body"]
        assert "Message   : disk full" in email["body"]
        assert '"host": "db1"' in email["body"]

    async def test_cc_and_recipient_lists(self, channel) -> None:
        transport = _mail(channel, to=["a@example.com", "b@example.com"], cc="boss@example.com")

        await transport.log("info", "hello")

        email = channel.payloads[0]
        assert email["to"] == ["a@example.com", "b@example.com"]
        assert email["cc"] == "boss@example.com"

    async def test_custom_name_and_templates(self, channel) -> None:
        transport = _mail(
            channel,
            name="alerts",
            subject_template="{name}|{level}|{message}|{host}|{missing}",
            body_template="{message} on {host}",
        )

        await transport.log("warn", "slow", {"host": "db1"})

        email = channel.payloads[0]
        assert email["subject"] == "alerts|warn|slow|db1|"
        assert email["body"] == "slow on db1"

    async def test_log_override(self, channel) -> None:
        transport = _mail(channel, allow_log_override=True)

        await transport.log(
            "info",
            "rerouted",
            {"to": "dev@example.com", "from": "bot@example.com", "cc": "lead@example.com", "k": 1},
        )

        email = channel.payloads[0]
        assert email["to"] == "dev@example.com"
        assert email["from"] == "bot@example.com"
        assert email["cc"] == "lead@example.com"
        assert "dev@example.com" not in email["body"]
        assert '"k": 1' in email["body"]

    async def test_override_ignored_when_not_allowed(self, channel) -> None:
        transport = _mail(channel)

        await transport.log("info", "stays", {"to": "dev@example.com"})

        email = channel.payloads[0]
        assert email["to"] == "ops@example.com"
        assert "dev@example.com" in email["body"]

    async def test_caller_metadata_untouched(self, channel) -> None:
        transport = _mail(channel, allow_log_override=True)
        meta = {"to": "dev@example.com", "nested": {"a": 1}}

        await transport.log("info", "x", meta)

        assert meta == {"to": "dev@example.com", "nested": {"a": 1}}

    async def test_missing_addresses(self, channel) -> None:
        transport = _mail(channel, sender=None)

        with pytest.raises(TransportIOError, match='"from" and "to" addresses required'):
            await transport.log("info", "x")
        assert channel.requests == []

    async def test_mailer_error_reply(self) -> None:
        channel = FakeChannel([{"error": "smtp down"}])
        transport = _mail(channel)

        with pytest.raises(TransportIOError, match="smtp down"):
            await transport.log("info", "x")

    async def test_logged_event_carries_entry(self, channel) -> None:
        transport = _mail(channel, label="ops")
        logged = []
        transport.on("logged", logged.append)

        await transport.log("info", "x", {"k": 1})

        assert logged == [{"level": "info", "message": "x", "k": 1, "label": "ops"}]

    async def test_uncopyable_metadata(self, channel) -> None:
        transport = _mail(channel, allow_log_override=True)
        lock = threading.Lock()

        await transport.log("info", "x", {"lock": lock, "to": "dev@example.com"})

        email = channel.payloads[0]
        assert email["to"] == "dev@example.com"
        assert "lock" in email["body"]

    async def test_silent(self, channel) -> None:
        await _mail(channel, silent=True).log("info", "x")
        assert channel.requests == []


class TestMailThroughLogger:
    async def test_failure_reported_to_logger(self, channel) -> None:
        transport = _mail(channel, to=None)
        logger = Logger(transports=[transport])
        errors = []
        logger.on("error", lambda error, source: errors.append((error, source)))

        result = await logger.error("nobody to tell")

        assert isinstance(result.error, TransportIOError)
        assert errors == [(result.error, transport)]

    async def test_level_threshold(self, channel) -> None:
        logger = Logger(transports=[_mail(channel, level="error")])

        await logger.warn("not mailed")
        await logger.error("mailed")

        assert [email["subject"] for email in channel.payloads] == ["mail [error]: mailed"]
