"""Type definitions for channel configuration.

This module defines Pydantic models for the connection params and the
payload reported back to the orchestrator when a channel is opened.
"""

import json
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pipes_channel.base.errors import ConfigurationError

FILE_PATH_KEY = "path"
STDIO_KEY = "stdio"
BUFFERED_STDIO_KEY = "buffered_stdio"


class ConnectionParams(BaseModel):
    """Parameters supplied by the orchestrator that select a message channel.

    At most one of the known keys is expected. When several are present the
    writer applies a fixed precedence (``path``, then ``stdio``, then
    ``buffered_stdio``). Unknown keys are kept but never used for selection.

    Attributes:
        path: File to append messages to.
        stdio: Name of a standard stream to write each message to immediately.
        buffered_stdio: Name of a standard stream to write all messages to on close.
    """
    model_config = ConfigDict(extra="allow", frozen=True, strict=True)

    path: Optional[str] = None
    stdio: Optional[str] = None
    buffered_stdio: Optional[str] = None

    @field_validator("path", "stdio", "buffered_stdio", mode="before")
    @classmethod
    def reject_explicit_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must be a string, not null")
        return value

    @classmethod
    def from_value(cls, value: Union["ConnectionParams", Mapping[str, Any], str]) -> "ConnectionParams":
        """Build params from a mapping, a JSON object string, or existing params.

        Raises:
            ConfigurationError: If the value is not an object or a known key
                holds something other than a string, including null.
        """
        if isinstance(value, ConnectionParams):
            return value
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Connection params are not valid JSON: {exc}") from exc
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                f"Connection params must be an object, got {type(value).__name__}"
            )
        try:
            return cls.model_validate(dict(value))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid connection params: {exc}", params=value) from exc

    def to_dict(self) -> Dict[str, Any]:
        """Return the params as a plain dict, omitting unset known keys."""
        return self.model_dump(exclude_none=True)


class OpenedPayload(BaseModel):
    """Payload reported with the "opened" message.

    Attributes:
        extras: Writer-specific information, always present.
    """
    extras: Dict[str, Any] = Field(default_factory=dict)

