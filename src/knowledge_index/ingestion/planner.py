"""Chunk boundary planning.

The planner never rewrites document content.  It runs a recursive,
separator-priority splitter over the text, then maps every fragment back
onto the original string so each chunk is an exact ``[start, end)`` span.
Only whitespace may fall between two fragments; that whitespace opens the
following chunk, and whitespace after the last fragment closes the last
chunk, so the boundaries partition the whole document.

When a split does not map back cleanly, or the result breaks a limit
(too many chunks, a chunk too long), the planner retries with a smaller
target chunk size.  Sizes are tried from ``max_tokens * chars_per_token``
down to ``min_chunk_size``, shrinking by ``shrink_ratio`` each step.
"""

from __future__ import annotations

import logging
import re

from langchain_text_splitters import RecursiveCharacterTextSplitter

from knowledge_index.config import settings
from knowledge_index.errors import InvalidChunkPlan
from knowledge_index.ingestion.models import ChunkBoundary

logger = logging.getLogger(__name__)

# Highest priority first: markdown headers, horizontal rules, paragraphs,
# lines, words, characters.
SEPARATORS: list[str] = [
    "\n## ",
    "\n### ",
    "\n#### ",
    "\n##### ",
    "\n###### ",
    "\n# ",
    "\n---\n",
    "\n\n",
    "\n",
    " ",
    "",
]

_NON_WHITESPACE = re.compile(r"\S")


class TextChunkPlanner:
    """Split document text into whitespace-exact, size-bounded boundaries.

    Parameters
    ----------
    max_tokens_per_chunk:
        Token budget per chunk.  A chunk may hold at most
        ``max(200, max_tokens_per_chunk * 4)`` characters.
    max_chunk_count:
        Upper bound on the number of chunks in one plan.
    chars_per_token:
        Estimate used to derive the first target chunk size.
    min_chunk_size:
        Smallest target chunk size tried before giving up.
    shrink_ratio:
        Factor applied to the target size after each failed attempt.
    """

    def __init__(
        self,
        *,
        max_tokens_per_chunk: int = settings.chunk_max_tokens,
        max_chunk_count: int = settings.chunk_max_count,
        chars_per_token: int = settings.chunk_chars_per_token,
        min_chunk_size: int = settings.chunk_min_size,
        shrink_ratio: float = settings.chunk_shrink_ratio,
    ) -> None:
        if not 0 < shrink_ratio < 1:
            raise ValueError(f"shrink_ratio must be in (0, 1), got {shrink_ratio!r}")
        self.max_tokens_per_chunk = max_tokens_per_chunk
        self.max_chunk_count = max_chunk_count
        self.chars_per_token = chars_per_token
        self.min_chunk_size = min_chunk_size
        self.shrink_ratio = shrink_ratio

    @property
    def max_chunk_chars(self) -> int:
        """Hard ceiling on a single chunk's character length."""
        return max(200, self.max_tokens_per_chunk * 4)

    # -- public API -----------------------------------------------------------

    def plan(self, content: str) -> list[ChunkBoundary]:
        """Return boundaries partitioning ``[0, len(content))``.

        Raises
        ------
        InvalidChunkPlan
            When every candidate chunk size fails to produce a valid plan.
        """
        reason = "NO_CANDIDATE_SIZES"
        for chunk_size in self.candidate_sizes():
            boundaries, reason = self._attempt(content, chunk_size)
            if boundaries is None:
                logger.debug("Chunk plan at size %d rejected: %s", chunk_size, reason)
                continue

            error = self.validate(content, boundaries)
            if error is None:
                return boundaries
            reason = error
            logger.debug("Chunk plan at size %d failed validation: %s", chunk_size, error)

        raise InvalidChunkPlan(
            "INVALID_CHUNK_PLAN",
            reason=reason,
            content_length=len(content),
        )

    def candidate_sizes(self) -> list[int]:
        """Target chunk sizes to try, largest first, without duplicates."""
        sizes: list[int] = []
        current = float(self.max_tokens_per_chunk * self.chars_per_token)
        while current >= self.min_chunk_size:
            size = int(current)
            if size not in sizes:
                sizes.append(size)
            current *= self.shrink_ratio
        return sizes

    def validate(self, content: str, boundaries: list[ChunkBoundary]) -> str | None:
        """Return a description of the first violated rule, or ``None``."""
        chunks = sorted(boundaries, key=lambda b: b.start)
        if len(chunks) > self.max_chunk_count:
            return f"Chunk count {len(chunks)} exceeds max {self.max_chunk_count}"

        total = len(content)
        if not chunks or chunks[0].start != 0:
            return "First chunk must start at 0"
        if chunks[-1].end != total:
            return "Last chunk must end at document length"

        for i, chunk in enumerate(chunks):
            if chunk.start >= chunk.end:
                return f"Chunk {i} has invalid offsets"
            if chunk.start < 0 or chunk.end > total:
                return f"Chunk {i} is out of bounds"
            if i > 0 and chunk.start != chunks[i - 1].end:
                return f"Chunk {i} does not align with previous end"

        limit = self.max_chunk_chars
        for i, chunk in enumerate(chunks):
            if chunk.length > limit:
                return f"Chunk {i} exceeds {limit} characters"

        return None

    # -- internals ------------------------------------------------------------

    def _split(self, content: str, chunk_size: int) -> list[str]:
        splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=0,
            length_function=len,
            separators=SEPARATORS,
            keep_separator=True,
        )
        return splitter.split_text(content)

    def _attempt(self, content: str, chunk_size: int) -> tuple[list[ChunkBoundary] | None, str]:
        splits = self._split(content, chunk_size)
        return self._boundaries_from_splits(splits, content)

    def _boundaries_from_splits(
        self, splits: list[str], content: str
    ) -> tuple[list[ChunkBoundary] | None, str]:
        """Locate each fragment in *content*, in order.

        Returns ``(boundaries, "OK")`` or ``(None, reason)``.
        """
        if not splits:
            return None, "EMPTY_SPLITS"

        boundaries: list[ChunkBoundary] = []
        offset = 0
        for split in splits:
            if not split:
                return None, "EMPTY_SPLIT"
            match = content.find(split, offset)
            if match == -1:
                return None, "SPLIT_NOT_FOUND"
            if _NON_WHITESPACE.search(content, offset, match):
                return None, "GAP_NOT_WHITESPACE"

            end = match + len(split)
            if end <= offset:
                return None, "INVALID_SPLIT_RANGE"
            boundaries.append(ChunkBoundary(start=offset, end=end))
            offset = end
            if len(boundaries) > self.max_chunk_count:
                return None, "CHUNK_COUNT_EXCEEDED"

        if offset != len(content):
            if _NON_WHITESPACE.search(content, offset):
                return None, "OFFSET_MISMATCH"
            last = boundaries[-1]
            boundaries[-1] = ChunkBoundary(start=last.start, end=len(content), label=last.label)

        return boundaries, "OK"
