"""Channel protocol and shared helpers.

A channel delivers messages from the worker to the orchestrator. Every
channel kind implements the same two operations, ``write_message`` and
``close``, and can be used as a context manager so that disposal runs on
every exit path.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Protocol, TextIO, runtime_checkable

from pipes_channel.base.errors import ConfigurationError
from pipes_channel.base.messages import Message

logger = logging.getLogger("pipes_channel.channel")


class StdStream(str, Enum):
    """Standard stream a stream channel is bound to."""

    OUT = "stdout"
    ERR = "stderr"

    @classmethod
    def parse(cls, name: Any, key: Optional[str] = None) -> "StdStream":
        """Resolve a stream name case-insensitively.

        Args:
            name: Stream name, expected to be "stdout" or "stderr" in any case.
            key: Connection params key the name came from, used in the error.

        Raises:
            ConfigurationError: If the name is not a known stream.
        """
        if isinstance(name, str):
            lowered = name.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        source = f" for {key}" if key else ""
        raise ConfigurationError(f"Invalid stream provided{source}: {name!r}")

    def resolve(self) -> TextIO:
        """Return the current ``sys`` stream object for this stream.

        Looked up on every call so redirection of ``sys.stdout`` or
        ``sys.stderr`` after the channel is built is honored.
        """
        return sys.stdout if self is StdStream.OUT else sys.stderr


@runtime_checkable
class MessageWriterChannel(Protocol):
    """Protocol for message channels.

    Implementations must preserve call order and must never write part of a
    message: a message is either fully delivered or the call raises before
    any of its bytes are written.
    """

    def write_message(self, message: Message) -> None:
        """Deliver a message according to the channel's own timing policy.

        Args:
            message: The message to deliver.

        Raises:
            ChannelIOError: If the target cannot be written.
            ChannelClosedError: If the channel was already closed.
        """
        ...

    def close(self) -> None:
        """Dispose of the channel. Must be safe to call more than once."""
        ...


def close_channel(channel: Any) -> None:
    """Dispose of a channel object returned by a writer.

    Channels from third-party writers may not define ``close``; those are
    left alone.
    """
    close = getattr(channel, "close", None)
    if close is None:
        logger.debug("Channel %s has no close(); nothing to dispose", type(channel).__name__)
        return
    close()
