"""Error types raised by message channels and writers.

Configuration problems are fatal by nature (the orchestrator and the worker
disagree about how to talk), while I/O problems are raised as ordinary
exceptions a caller can catch and recover from.
"""

from typing import Any, Mapping, Optional


class ConfigurationError(ValueError):
    """Raised when connection params cannot be turned into a channel.

    Attributes:
        params: The connection params that were rejected, if available.
    """

    def __init__(self, message: str, params: Optional[Mapping[str, Any]] = None) -> None:
        self.params = dict(params) if params is not None else None
        super().__init__(message)


class ChannelIOError(OSError):
    """Raised when a channel fails to deliver a message to its target.

    Attributes:
        target: Description of the delivery target (file path or stream name).
    """

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        super().__init__(f"Failed to write message to {target}: {reason}")


class ChannelClosedError(RuntimeError):
    """Raised when a message is written to a channel that was already disposed."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Channel for {target} is closed")
