"""Character-window chunking.

Splits text into consecutive, overlapping windows:
- Each window holds at most ``chunk_size`` characters
- Window starts advance by ``chunk_size - chunk_overlap``
- The final window may be shorter
- Text is not normalized, so chunks can be reassembled losslessly
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional, Sequence

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


@dataclass(frozen=True)
class Chunk:
    text: str
    index: int
    char_start: int
    char_end: int
    source: Optional[str] = None

    def metadata(self) -> Dict[str, Any]:
        """Payload fields describing where this chunk came from."""
        meta: Dict[str, Any] = {
            "index": self.index,
            "char_start": self.char_start,
            "char_end": self.char_end,
        }
        if self.source is not None:
            meta["source"] = self.source
        return meta


class TextChunker:
    """Stateful chunker; size and overlap are validated when they are set."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self._chunk_size = DEFAULT_CHUNK_SIZE
        self._chunk_overlap = 0
        self.set_chunk_size(chunk_size)
        self.set_chunk_overlap(chunk_overlap)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def set_chunk_size(self, size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, int):
            raise ConfigError(f"chunk_size must be an integer, got {size!r}")
        if size <= 0:
            raise ConfigError("chunk_size must be positive")
        if self._chunk_overlap >= size:
            raise ConfigError(
                f"chunk_size ({size}) must be > chunk_overlap ({self._chunk_overlap})"
            )
        self._chunk_size = size

    def set_chunk_overlap(self, overlap: int) -> None:
        if isinstance(overlap, bool) or not isinstance(overlap, int):
            raise ConfigError(f"chunk_overlap must be an integer, got {overlap!r}")
        if overlap < 0:
            raise ConfigError("chunk_overlap must be >= 0")
        if overlap >= self._chunk_size:
            raise ConfigError(
                f"chunk_overlap ({overlap}) must be < chunk_size ({self._chunk_size})"
            )
        self._chunk_overlap = overlap

    def process(self, text: str, source: Optional[str] = None) -> List[Chunk]:
        """Split ``text`` into ordered chunks tagged with ``source``."""
        if not text:
            return []

        step = self._chunk_size - self._chunk_overlap
        n = len(text)
        chunks: List[Chunk] = []
        start = 0
        while True:
            end = min(start + self._chunk_size, n)
            chunks.append(
                Chunk(
                    text=text[start:end],
                    index=len(chunks),
                    char_start=start,
                    char_end=end,
                    source=source,
                )
            )
            if end >= n:
                break
            start += step

        logger.debug(
            "Chunked %d chars into %d chunks (size=%d, overlap=%d)",
            n,
            len(chunks),
            self._chunk_size,
            self._chunk_overlap,
        )
        return chunks


def reassemble(chunks: Sequence[Chunk], overlap: int) -> str:
    """Rebuild the original text from chunks produced with ``overlap``."""
    ordered = sorted(chunks, key=lambda c: c.index)
    if not ordered:
        return ""
    parts = [ordered[0].text]
    for chunk in ordered[1:]:
        parts.append(chunk.text[overlap:])
    return "".join(parts)
