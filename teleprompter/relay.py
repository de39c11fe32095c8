"""Apply queued prompt change notifications to the key-value cache."""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog

from .prompt import ChangeMessage, DeleteMessage, UpdateMessage, parse_message
from .store import KVNamespace

logger = structlog.get_logger(__name__)


@dataclass
class QueueMessage:
    """One delivered queue message."""

    body: ChangeMessage | Mapping[str, Any]
    id: str = ""


@dataclass
class MessageBatch:
    """An ordered batch of queue messages from a single delivery."""

    messages: list[QueueMessage] = field(default_factory=list)
    queue: str = ""

    @classmethod
    def of(cls, *bodies: ChangeMessage | Mapping[str, Any], queue: str = "") -> "MessageBatch":
        """Wrap message bodies into a batch, keeping their order."""
        return cls(messages=[QueueMessage(body=body) for body in bodies], queue=queue)

    def __len__(self) -> int:
        return len(self.messages)


def _as_message(body: ChangeMessage | Mapping[str, Any]) -> ChangeMessage:
    if isinstance(body, (UpdateMessage, DeleteMessage)):
        return body
    return parse_message(body)


async def handle_updates(batch: MessageBatch, kv: KVNamespace) -> int:
    """
    Apply a batch of change notifications to the store, in order.

    Updates overwrite the key with the serialized message, tag included.
    Deletes remove the key. Messages are not deduplicated, so the last
    update for a key wins. A failing message stops the batch and its
    error propagates; earlier messages stay applied.

    Returns:
        The number of messages applied.
    """
    applied = 0
    for message in batch.messages:
        body = _as_message(message.body)
        if isinstance(body, UpdateMessage):
            await kv.put(body.id, json.dumps(body.to_dict()))
            logger.debug("Applied prompt update", prompt_id=body.id, version=body.version)
        elif isinstance(body, DeleteMessage):
            await kv.delete(body.id)
            logger.debug("Applied prompt delete", prompt_id=body.id)
        else:
            raise TypeError(f"Unhandled message type: {type(body).__name__}")
        applied += 1

    logger.debug("Processed update batch", queue=batch.queue, applied=applied)
    return applied
