"""Data models for messages, stream events, personalities and API bodies."""
