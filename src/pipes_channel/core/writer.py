"""Message writers: turn connection params into a channel.

A writer is handed the connection params chosen by the orchestrator and
builds the channel the worker writes its messages to. Writers may also
report extra information back to the orchestrator with the "opened"
message by overriding ``get_opened_extras``.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, Union

from pipes_channel.base.channel import MessageWriterChannel, StdStream
from pipes_channel.base.channels import BufferedStreamChannel, FileChannel, StreamChannel
from pipes_channel.base.errors import ConfigurationError
from pipes_channel.core.types import (
    BUFFERED_STDIO_KEY,
    FILE_PATH_KEY,
    STDIO_KEY,
    ConnectionParams,
    OpenedPayload,
)

logger = logging.getLogger("pipes_channel.writer")


class MessageWriter(ABC):
    """Base class for writers that open a channel back to the orchestrator.

    Subclasses implement ``open`` and may override ``get_opened_extras``.
    The opened payload itself is assembled by ``get_opened_payload``, which
    is not part of this class and cannot be overridden.
    """

    @abstractmethod
    def open(self, params: ConnectionParams) -> MessageWriterChannel:
        """Build the channel described by the connection params.

        Args:
            params: Params passed by the orchestrator-side message reader.

        Returns:
            A channel ready for ``write_message`` calls. The caller owns it
            and must close it.
        """
        ...

    def get_opened_extras(self) -> Dict[str, Any]:
        """Return writer-specific information for the orchestrator.

        The result is reported under the ``extras`` key of the opened
        payload. Only information that cannot be known before the worker
        starts belongs here.
        """
        return {}


class DefaultWriter(MessageWriter):
    """Writer that supports file, stream and buffered stream channels.

    Selection precedence, first match wins:

    1. ``path`` -> FileChannel
    2. ``stdio`` -> StreamChannel
    3. ``buffered_stdio`` -> BufferedStreamChannel
    """

    def open(self, params: Union[ConnectionParams, Mapping]) -> MessageWriterChannel:
        params = ConnectionParams.from_value(params)

        if params.path is not None:
            channel: MessageWriterChannel = FileChannel(params.path)
        elif params.stdio is not None:
            channel = StreamChannel(StdStream.parse(params.stdio, key=STDIO_KEY))
        elif params.buffered_stdio is not None:
            channel = BufferedStreamChannel(
                StdStream.parse(params.buffered_stdio, key=BUFFERED_STDIO_KEY)
            )
        else:
            raise ConfigurationError(
                "No way to write messages: connection params must contain one of "
                f"{FILE_PATH_KEY!r}, {STDIO_KEY!r} or {BUFFERED_STDIO_KEY!r}",
                params=params.to_dict(),
            )

        logger.debug("Opened %r", channel)
        return channel


def get_opened_payload(writer: MessageWriter) -> Dict[str, Any]:
    """Assemble the payload sent to the orchestrator with the "opened" message.

    Always returns ``{"extras": {...}}``; the inner object comes from
    ``writer.get_opened_extras()`` and defaults to ``{}``.

    Raises:
        TypeError: If the writer's extras are not a mapping.
    """
    extras = writer.get_opened_extras()
    if extras is None:
        extras = {}
    if not isinstance(extras, Mapping):
        raise TypeError(
            f"{type(writer).__name__}.get_opened_extras() must return a mapping, "
            f"got {type(extras).__name__}"
        )
    return OpenedPayload(extras=dict(extras)).model_dump()
