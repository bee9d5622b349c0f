"""
Unified query contract.

Every queryable transport answers the same options with the same semantics:
range filter on ``timestamp`` → order → ``start`` offset → ``rows`` limit →
``fields`` projection.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

QueryOrder = Literal["asc", "desc"]

DEFAULT_WINDOW = timedelta(hours=24)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an entry's timestamp (ISO-8601 string, datetime or epoch seconds)."""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


class QueryOptions(BaseModel):
    """Options understood by ``Transport.query`` and ``Logger.query``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    from_: Optional[datetime] = Field(default=None, alias="from", description="Inclusive lower bound")
    until: Optional[datetime] = Field(default=None, description="Inclusive upper bound")
    start: int = Field(default=0, ge=0, description="Rows to skip")
    rows: Optional[int] = Field(default=None, ge=0, description="Maximum rows returned")
    order: Optional[QueryOrder] = Field(default=None, description="Timestamp order; None = transport default")
    fields: Optional[tuple[str, ...]] = Field(default=None, description="Projection")

    @field_validator("from_", "until", mode="before")
    @classmethod
    def _coerce_datetime(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        return value

    @field_validator("from_", "until")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_utc(value)

    @classmethod
    def coerce(cls, options: "QueryOptions | Mapping[str, Any] | None") -> "QueryOptions":
        if options is None:
            return cls()
        if isinstance(options, QueryOptions):
            return options
        return cls.model_validate(dict(options))

    def normalized(self, *, default_order: QueryOrder = "desc", now: Optional[datetime] = None) -> "QueryOptions":
        """Fill the defaults: the last 24 hours up to now, ``default_order``."""
        now = to_utc(now) if now is not None else datetime.now(timezone.utc)
        until = self.until or now
        return self.model_copy(
            update={
                "from_": self.from_ or (until - DEFAULT_WINDOW),
                "until": until,
                "order": self.order or default_order,
            }
        )

    def in_range(self, entry: Mapping[str, Any]) -> bool:
        if self.from_ is None and self.until is None:
            return True
        stamp = parse_timestamp(entry.get("timestamp"))
        if stamp is None:
            return False
        if self.from_ is not None and stamp < self.from_:
            return False
        if self.until is not None and stamp > self.until:
            return False
        return True

    def project(self, entry: Mapping[str, Any]) -> dict[str, Any]:
        if not self.fields:
            return dict(entry)
        return {key: entry.get(key) for key in self.fields}

    def apply(self, entries: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Evaluate these (already normalized) options over entries in insertion order."""
        matched = [entry for entry in entries if self.in_range(entry)]
        if self.order == "desc":
            matched.reverse()
        matched = matched[self.start :]
        if self.rows is not None:
            matched = matched[: self.rows]
        return [self.project(entry) for entry in matched]
