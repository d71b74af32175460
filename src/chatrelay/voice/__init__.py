"""Speech synthesis."""

from chatrelay.voice.tts import SpeechSynthesizer

__all__ = ["SpeechSynthesizer"]
