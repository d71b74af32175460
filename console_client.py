#!/usr/bin/env python3
"""
Lightweight console client for the chat relay streaming API.

Usage:
    python console_client.py "Your prompt here"
    python console_client.py "Explain recursion" developer
"""

import asyncio
import os
import sys

from chatrelay.callbacks import StreamCallbacks
from chatrelay.client import ChatClient
from chatrelay.models.messages import MessageRole, create_message

# Chat relay server root
API_URL = os.getenv("CHATRELAY_URL", "http://localhost:8000")


async def stream_chat(prompt: str, personality: str | None = None) -> int:
    """Stream a chat reply and render it to the console."""
    print(f"\n{'=' * 80}")
    print(f"PROMPT: {prompt}")
    if personality:
        print(f"PERSONALITY: {personality}")
    print(f"{'=' * 80}\n")

    def on_chunk(chunk: str) -> None:
        print(chunk, end="", flush=True)

    def on_complete(content: str) -> None:
        print(f"\n\n{'=' * 80}")
        print(f"Complete: {len(content)} characters")
        print(f"{'=' * 80}\n")

    def on_error(error: Exception) -> None:
        print(f"\n❌ ERROR: {error}", file=sys.stderr)

    callbacks = StreamCallbacks(on_chunk=on_chunk, on_complete=on_complete, on_error=on_error)

    async with ChatClient(base_url=API_URL) as client:
        outcome = await client.stream_chat_message(
            [create_message(prompt, role=MessageRole.USER)],
            callbacks,
            personality=personality,
        )
    return 0 if outcome.status == "completed" else 1


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python console_client.py <prompt> [personality]")
        print("\nExamples:")
        print('  python console_client.py "Hello, world!"')
        print('  python console_client.py "Explain recursion" developer')
        sys.exit(1)

    prompt = sys.argv[1]
    personality = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        sys.exit(asyncio.run(stream_chat(prompt, personality)))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
