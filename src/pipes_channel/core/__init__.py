from pipes_channel.base.errors import ChannelClosedError, ChannelIOError, ConfigurationError
from pipes_channel.base.messages import (
    PIPES_PROTOCOL_VERSION,
    Message,
    PipesMessage,
    encode_message,
    message_to_dict,
)
from pipes_channel.core.types import ConnectionParams, OpenedPayload
from pipes_channel.core.writer import DefaultWriter, MessageWriter, get_opened_payload
from pipes_channel.core.session import MessageReporter, open_message_channel

__all__ = [
    # Errors
    "ConfigurationError",
    "ChannelIOError",
    "ChannelClosedError",
    # Messages
    "PIPES_PROTOCOL_VERSION",
    "Message",
    "PipesMessage",
    "encode_message",
    "message_to_dict",
    # Configuration
    "ConnectionParams",
    "OpenedPayload",
    # Writers
    "MessageWriter",
    "DefaultWriter",
    "get_opened_payload",
    # Session
    "MessageReporter",
    "open_message_channel",
]
