"""Helpers shared by the Bridge test suite."""

import asyncio


async def drain(rounds: int = 20) -> None:
    """Let background tasks scheduled on the running loop make progress."""
    for _ in range(rounds):
        await asyncio.sleep(0)
