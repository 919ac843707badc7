"""Message types and their single-line JSON encoding.

Messages are opaque to channels: anything that is a pydantic model or a
mapping can be written. ``PipesMessage`` is the shape the reporter uses.
"""

import json
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PIPES_PROTOCOL_VERSION = "0.1"


class PipesMessage(BaseModel):
    """A single message sent from the worker to the orchestrator.

    Attributes:
        version: Protocol version, serialized as ``__pipes_version``.
        method: Name of the event (e.g., "opened", "log", "closed").
        params: Optional event-specific data.
    """
    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(default=PIPES_PROTOCOL_VERSION, alias="__pipes_version")
    method: str
    params: Optional[Dict[str, Any]] = None


Message = Union[BaseModel, Mapping]


def message_to_dict(message: Message) -> Dict[str, Any]:
    """Convert a message into a JSON-ready dict.

    Pydantic models are dumped by alias so protocol field names
    (e.g., ``__pipes_version``) appear on the wire.

    Raises:
        TypeError: If the message is neither a pydantic model nor a mapping.
    """
    if isinstance(message, BaseModel):
        return message.model_dump(mode="json", by_alias=True)
    if isinstance(message, Mapping):
        return dict(message)
    raise TypeError(f"Cannot encode message of type {type(message).__name__}")


def encode_message(message: Message) -> str:
    """Encode a message as one line of JSON, without a trailing newline."""
    return json.dumps(
        message_to_dict(message),
        separators=(",", ":"),
        default=_default_json_serializer,
    )


def _default_json_serializer(obj: Any) -> Any:
    # Pydantic models nested in params or extras; anything else is rejected.
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
