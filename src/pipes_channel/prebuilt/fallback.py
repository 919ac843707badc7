import logging

from pipes_channel.base.channel import MessageWriterChannel, close_channel
from pipes_channel.base.errors import ChannelIOError
from pipes_channel.base.messages import Message

logger = logging.getLogger("pipes_channel.fallback")


class FallbackChannel:
    """Channel that degrades to a second channel when the first fails.

    The first ``ChannelIOError`` from the primary channel switches all
    further writes, starting with the failed message, to the fallback.
    Errors from the fallback propagate.

    Args:
        primary: Preferred channel.
        fallback: Channel used once the primary has failed.
    """

    def __init__(self, primary: MessageWriterChannel, fallback: MessageWriterChannel) -> None:
        self.primary = primary
        self.fallback = fallback
        self.degraded = False

    def write_message(self, message: Message) -> None:
        if not self.degraded:
            try:
                self.primary.write_message(message)
                return
            except ChannelIOError as exc:
                logger.warning("Primary channel failed, switching to fallback: %s", exc)
                self.degraded = True
        self.fallback.write_message(message)

    def close(self) -> None:
        try:
            close_channel(self.primary)
        finally:
            close_channel(self.fallback)

    def __enter__(self) -> "FallbackChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
