import os
from typing import Union

from pipes_channel.base.errors import ChannelClosedError, ChannelIOError
from pipes_channel.base.messages import Message, encode_message


class FileChannel:
    """Channel that appends one JSON line per message to a file.

    The file is opened in append mode for every message and closed again
    before ``write_message`` returns. Nothing is held open between writes, so
    a reader that rotates or truncates the file never loses later messages
    to a stale handle.

    Args:
        path: File to append to. Created on first write if missing.
    """

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = os.fspath(path)
        self._closed = False

    def write_message(self, message: Message) -> None:
        if self._closed:
            raise ChannelClosedError(self.path)
        line = encode_message(message)
        try:
            with open(self.path, "a", encoding="utf-8") as fp:
                fp.write(f"{line}\n")
                fp.flush()
        except OSError as exc:
            raise ChannelIOError(self.path, str(exc)) from exc

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "FileChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileChannel(path={self.path!r})"
