"""
Mail transport: every record becomes one email handed to a mailer service.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ..channels import MessageChannel
from ..errors import ConfigurationError, TransportIOError
from ..formatting import orjson_dumps, utc_now
from .base import Transport

Recipients = Union[str, Sequence[str]]

DEFAULT_SUBJECT_TEMPLATE = "{name} [{level}]: {message}"
DEFAULT_BODY_TEMPLATE = (
    "{name}\n"
    "\n"
    "Level     : {level}\n"
    "Date/Time : {timestamp}\n"
    "Message   : {message}\n"
    "\n"
    "{meta_stringified}"
)

OVERRIDE_KEYS = ("from", "to", "cc")


class _TemplateFields(dict):
    def __missing__(self, key: str) -> str:
        return ""


class MailTransport(Transport):
    """Send records as emails through a mailer reachable on ``address``.

    Args:
        address: Address of the mailer service on the channel.
        channel: Channel used to reach the mailer.
        sender: Default sender address.
        to: Default recipient(s).
        cc: Default CC recipient(s).
        allow_log_override: Let ``from``/``to``/``cc`` metadata override the
            defaults; those keys are then removed from the logged metadata.
        subject_template: ``str.format`` template for the subject.
        body_template: ``str.format`` template for the body.
        timestamp_fn: Produces the ``timestamp`` template field.
    """

    name = "mail"

    def __init__(
        self,
        *,
        address: Optional[str] = None,
        channel: Optional[MessageChannel] = None,
        sender: Optional[str] = None,
        to: Optional[Recipients] = None,
        cc: Optional[Recipients] = None,
        allow_log_override: bool = False,
        subject_template: Optional[str] = None,
        body_template: Optional[str] = None,
        timestamp_fn: Optional[Callable[[], str]] = None,
        **options: Any,
    ):
        super().__init__(**options)
        if not address:
            raise ConfigurationError("Address of the mailer service required")
        if channel is None:
            raise ConfigurationError("A message channel is required to reach the mailer service")

        self.address = address
        self.channel = channel
        self.sender = sender
        self.to = to
        self.cc = cc
        self.allow_log_override = allow_log_override
        self.subject_template = subject_template or DEFAULT_SUBJECT_TEMPLATE
        self.body_template = body_template or DEFAULT_BODY_TEMPLATE
        self.timestamp_fn = timestamp_fn or (lambda: utc_now().isoformat())

    def _pick(self, key: str, default: Any, meta: Mapping[str, Any]) -> Any:
        if self.allow_log_override and meta.get(key):
            return meta[key]
        return default

    def build_email(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        meta: Dict[str, Any] = dict(metadata or {})

        email: Dict[str, Any] = {
            "from": self._pick("from", self.sender, meta),
            "to": self._pick("to", self.to, meta),
            "cc": self._pick("cc", self.cc, meta),
        }
        if not email["from"] or not email["to"]:
            raise TransportIOError(
                'Message not sent: "from" and "to" addresses required',
                transport=self.name,
            )
        if email["cc"] is None:
            del email["cc"]

        if self.allow_log_override:
            for key in OVERRIDE_KEYS:
                meta.pop(key, None)

        fields = _TemplateFields(meta)
        fields.update(
            timestamp=self.timestamp_fn(),
            meta_stringified=orjson_dumps(meta, pretty=True) if meta else "",
            name=self.name,
            level=level,
            message=message,
        )
        email["subject"] = self.subject_template.format_map(fields)
        email["body"] = self.body_template.format_map(fields)
        return email

    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        if self.silent:
            return

        email = self.build_email(level, message, metadata)
        reply = await self.channel.request(self.address, email)
        error = reply.body.get("error")
        if error:
            raise TransportIOError(str(error), transport=self.name, details={"address": self.address})

        self._publish(self.build_entry(level, message, metadata))
