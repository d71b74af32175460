"""Stream relay."""

from chatrelay.relay.stream import StreamRelay

__all__ = ["StreamRelay"]
