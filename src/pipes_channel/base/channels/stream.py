import logging
import warnings
from typing import List, Union

from pipes_channel.base.channel import StdStream
from pipes_channel.base.errors import ChannelClosedError, ChannelIOError
from pipes_channel.base.messages import Message, encode_message

logger = logging.getLogger("pipes_channel.channels.stream")


def _write_to_stream(stream: StdStream, data: str) -> None:
    target = stream.resolve()
    try:
        target.write(data)
        target.flush()
    except (OSError, ValueError) as exc:
        # ValueError is what a closed TextIO raises on write.
        raise ChannelIOError(stream.value, str(exc)) from exc


class StreamChannel:
    """Channel that writes each message to a standard stream as it arrives.

    Every ``write_message`` call puts exactly one line on the stream and
    flushes it before returning.

    Args:
        stream: The stream to write to, or its name ("stdout" / "stderr").
    """

    def __init__(self, stream: Union[StdStream, str]) -> None:
        self.stream = StdStream.parse(stream)
        self._closed = False

    def write_message(self, message: Message) -> None:
        if self._closed:
            raise ChannelClosedError(self.stream.value)
        _write_to_stream(self.stream, f"{encode_message(message)}\n")

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "StreamChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StreamChannel(stream={self.stream.value!r})"


class BufferedStreamChannel:
    """Channel that holds messages in memory until it is closed.

    ``write_message`` never touches the stream. All pending messages are
    written, in the order they were received, by ``flush``, which ``close``
    (and leaving a ``with`` block, normally or by exception) calls exactly
    once. A channel garbage-collected without being closed flushes during
    cleanup and emits a ResourceWarning. Messages still pending when the
    process is killed without cleanup are lost.

    Args:
        stream: The stream to write to, or its name ("stdout" / "stderr").

    Example:
        >>> with BufferedStreamChannel("stderr") as channel:
        ...     channel.write_message({"method": "log"})
        ...     # nothing on stderr yet
        >>> # stderr now holds one line
    """

    def __init__(self, stream: Union[StdStream, str]) -> None:
        self.stream = StdStream.parse(stream)
        self._pending: List[str] = []
        self._closed = False

    @property
    def pending(self) -> List[str]:
        """Encoded lines written but not yet delivered, oldest first."""
        return list(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def write_message(self, message: Message) -> None:
        if self._closed:
            raise ChannelClosedError(self.stream.value)
        # Encode now: later changes to the caller's object must not leak into
        # the delivered line, and a bad message fails at the call site.
        self._pending.append(encode_message(message))

    def flush(self) -> None:
        """Write every pending message to the stream and clear the buffer.

        Raises:
            ChannelIOError: If the stream write fails. The buffer is cleared
                regardless, so no message is ever delivered twice.
        """
        if not self._pending:
            return
        pending, self._pending = self._pending, []
        logger.debug("Flushing %d buffered message(s) to %s", len(pending), self.stream.value)
        _write_to_stream(self.stream, "".join(f"{line}\n" for line in pending))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.flush()

    def __enter__(self) -> "BufferedStreamChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_pending", None) or getattr(self, "_closed", True):
            return
        count = len(self._pending)
        # Best-effort delivery; never raise from a finalizer.
        try:
            self.close()
        except Exception:
            pass
        warnings.warn(
            f"BufferedStreamChannel for {self.stream.value} was never closed; "
            f"{count} buffered message(s) flushed during cleanup",
            ResourceWarning,
            stacklevel=2,
        )

    def __repr__(self) -> str:
        return (
            f"BufferedStreamChannel(stream={self.stream.value!r}, "
            f"pending={len(self._pending)})"
        )
