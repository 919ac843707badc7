from pipes_channel.prebuilt.fallback import FallbackChannel

__all__ = ["FallbackChannel"]
