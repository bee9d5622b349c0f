"""
Document-store transport: saves records as documents through a persistor
service and answers queries with its ``find`` action.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..channels import ChannelReply, MessageChannel
from ..errors import ConfigurationError, TransportIOError
from ..formatting import utc_now
from ..query import QueryOptions
from .base import Transport

VALID_WRITE_CONCERNS = frozenset(
    {
        "ACKNOWLEDGED",
        "ERRORS_IGNORED",
        "FSYNC_SAFE",
        "FSYNCED",
        "JOURNAL_SAFE",
        "JOURNALED",
        "MAJORITY",
        "NONE",
        "NORMAL",
        "REPLICA_ACKNOWLEDGED",
        "REPLICAS_SAFE",
        "SAFE",
        "UNACKNOWLEDGED",
    }
)


class DocumentStoreTransport(Transport):
    """Persist records into ``collection`` of a document store.

    Args:
        address: Address of the persistor service on the channel.
        channel: Channel used to reach the persistor.
        collection: Target collection.
        write_concern: Optional write concern sent with every save.
    """

    name = "document_store"
    supports_query = True

    def __init__(
        self,
        *,
        address: Optional[str] = None,
        channel: Optional[MessageChannel] = None,
        collection: str = "logs",
        write_concern: Optional[str] = None,
        **options: Any,
    ):
        super().__init__(**options)
        if not address:
            raise ConfigurationError("Address of the document store service required")
        if channel is None:
            raise ConfigurationError("A message channel is required to reach the document store")
        if write_concern is not None and write_concern not in VALID_WRITE_CONCERNS:
            raise ConfigurationError(
                "Invalid write concern for the document store",
                details={"write_concern": write_concern},
            )

        self.address = address
        self.channel = channel
        self.collection = collection
        self.write_concern = write_concern

    def build_command(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "timestamp": utc_now().isoformat(),
            "level": level,
            "message": message,
            "name": self.name,
        }
        if metadata:
            document["meta"] = dict(metadata)

        command: Dict[str, Any] = {
            "action": "save",
            "collection": self.collection,
            "document": document,
        }
        if self.write_concern:
            command["writeConcern"] = self.write_concern
        return command

    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        if self.silent:
            return

        command = self.build_command(level, message, metadata)
        reply = await self.channel.request(self.address, command)
        status = reply.body.get("status")
        if status == "error":
            raise TransportIOError(
                str(reply.body.get("message", "document store error")),
                transport=self.name,
            )
        if status != "ok":
            raise TransportIOError("Unknown reply status", transport=self.name, details={"status": status})

        self._publish(self.build_entry(level, message, metadata))

    def build_find(self, options: QueryOptions) -> Dict[str, Any]:
        command: Dict[str, Any] = {
            "action": "find",
            "collection": self.collection,
            "matcher": {
                "timestamp": {
                    "$gte": options.from_.isoformat(),
                    "$lte": options.until.isoformat(),
                }
            },
            "keys": {"_id": 0},
            "skip": options.start,
            "sort": {"timestamp": -1 if options.order == "desc" else 1},
        }
        if options.rows is not None:
            command["limit"] = options.rows
        return command

    async def query(self, options: QueryOptions | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        normalized = self.normalize_query(options)
        reply: Optional[ChannelReply] = await self.channel.request(self.address, self.build_find(normalized))

        entries: list[dict[str, Any]] = []
        while reply is not None:
            body = reply.body
            if body.get("status") == "error":
                raise TransportIOError(
                    str(body.get("message", "document store error")),
                    transport=self.name,
                )
            entries.extend(body.get("results") or [])
            if body.get("status") != "more-exist":
                break
            if reply.continuation is None:
                raise TransportIOError("Reply announced more results without a continuation", transport=self.name)
            reply = await reply.continuation({})

        return [normalized.project(entry) for entry in entries]
