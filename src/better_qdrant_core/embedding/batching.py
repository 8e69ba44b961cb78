"""Fixed-window concurrency limiter for per-text embedding requests."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from ..errors import ConfigError, ProtocolError
from .types import Vector

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 5


async def embed_in_batches(
    texts: Sequence[str],
    embed_one: Callable[[str], Awaitable[Vector]],
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
) -> List[Vector]:
    """Run ``embed_one`` over ``texts`` at most ``concurrency_limit`` at a time.

    Texts are split into consecutive batches. A batch runs fully in parallel
    and must settle before the next one starts. Each request writes into the
    result slot of its input position, so completion order does not matter.

    The first failure cancels the rest of its batch and is re-raised; no
    partial results are returned.
    """
    if concurrency_limit <= 0:
        raise ConfigError("concurrency_limit must be > 0")

    results: List[Optional[Vector]] = [None] * len(texts)

    async def _fill(position: int, text: str) -> None:
        results[position] = await embed_one(text)

    for start in range(0, len(texts), concurrency_limit):
        batch = texts[start : start + concurrency_limit]
        tasks = [
            asyncio.create_task(_fill(start + offset, text))
            for offset, text in enumerate(batch)
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        # Collect every error so none is reported as "never retrieved".
        errors = [
            t.exception() for t in tasks if not t.cancelled() and t.exception() is not None
        ]
        if errors:
            logger.debug(
                "Embedding batch starting at %d failed (%d error(s)); aborting",
                start,
                len(errors),
            )
            raise errors[0]

    vectors: List[Vector] = []
    for position, vector in enumerate(results):
        if vector is None:
            raise ProtocolError(f"No embedding produced for input {position}")
        vectors.append(vector)
    return vectors
