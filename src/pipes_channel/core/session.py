"""Scoped channel lifecycle and message reporting.

``open_message_channel`` guarantees a channel is disposed on every exit
path, which is what makes buffered channels deliver their messages.
``MessageReporter`` adds the opened/closed protocol messages around the
worker's own reports.
"""

import logging
import traceback
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from pipes_channel.base.channel import MessageWriterChannel, close_channel
from pipes_channel.base.messages import PipesMessage
from pipes_channel.core.types import ConnectionParams
from pipes_channel.core.writer import DefaultWriter, MessageWriter, get_opened_payload

logger = logging.getLogger("pipes_channel.session")

ParamsLike = Union[ConnectionParams, Mapping[str, Any], str]


@contextmanager
def open_message_channel(
    params: ParamsLike,
    writer: Optional[MessageWriter] = None,
) -> Iterator[MessageWriterChannel]:
    """Open a channel for the given params and close it on exit.

    Args:
        params: Connection params as a mapping, JSON string or model.
        writer: Writer used to build the channel. Defaults to DefaultWriter.

    Yields:
        The opened channel.

    Raises:
        ConfigurationError: If the params do not describe a channel.
    """
    writer = writer or DefaultWriter()
    channel = writer.open(ConnectionParams.from_value(params))
    try:
        yield channel
    finally:
        close_channel(channel)


class MessageReporter:
    """Reports worker status to the orchestrator over a channel.

    Entering the reporter sends an "opened" message carrying the writer's
    opened payload. Leaving it sends "closed" (with exception details if the
    block raised) and then closes the channel.

    Args:
        channel: Channel to write messages to. The reporter takes ownership.
        writer: Writer that built the channel; supplies the opened extras.

    Example:
        >>> with MessageReporter.open({"stdio": "stderr"}) as reporter:
        ...     reporter.report_log("starting")
        ...     reporter.report_custom_message({"rows": 10})
    """

    def __init__(self, channel: MessageWriterChannel, writer: Optional[MessageWriter] = None) -> None:
        self.channel = channel
        self.writer = writer or DefaultWriter()
        self._opened = False
        self._closed = False

    @classmethod
    def open(cls, params: ParamsLike, writer: Optional[MessageWriter] = None) -> "MessageReporter":
        """Build the channel from connection params and wrap it."""
        writer = writer or DefaultWriter()
        return cls(writer.open(ConnectionParams.from_value(params)), writer)

    def report_message(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Send an arbitrary protocol message."""
        self.channel.write_message(PipesMessage(method=method, params=params))

    def report_opened(self) -> None:
        """Send the "opened" message. Only the first call has an effect."""
        if self._opened:
            return
        self._opened = True
        self.report_message("opened", get_opened_payload(self.writer))

    def report_log(self, message: str, level: str = "INFO") -> None:
        """Send a log line to the orchestrator."""
        self.report_message("log", {"message": message, "level": level.upper()})

    def report_custom_message(self, payload: Any) -> None:
        """Send arbitrary JSON-serializable data to the orchestrator."""
        self.report_message("report_custom_message", {"payload": payload})

    def close(self, exc: Optional[BaseException] = None) -> None:
        """Send "closed" and dispose of the channel. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            params = {"exception": _serialize_exception(exc)} if exc is not None else {}
            self.report_message("closed", params)
        finally:
            close_channel(self.channel)

    def __enter__(self) -> "MessageReporter":
        try:
            self.report_opened()
        except BaseException:
            # __exit__ does not run when __enter__ fails.
            self._closed = True
            close_channel(self.channel)
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            logger.debug("Closing reporter after %s", type(exc).__name__)
        self.close(exc)


def _serialize_exception(exc: BaseException) -> Dict[str, Any]:
    return {
        "name": type(exc).__name__,
        "message": str(exc),
        "stack": traceback.format_tb(exc.__traceback__),
    }
