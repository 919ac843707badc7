from pipes_channel.base.channels.file import FileChannel
from pipes_channel.base.channels.stream import BufferedStreamChannel, StreamChannel

__all__ = ["BufferedStreamChannel", "FileChannel", "StreamChannel"]
