"""Client library for the chat relay API."""

from chatrelay.client.http import ChatClient, SpeechReply
from chatrelay.client.reader import StreamOutcome, StreamReader

__all__ = ["ChatClient", "SpeechReply", "StreamOutcome", "StreamReader"]
