"""
Chain construction for the word-level Markov model.

The chain maps a prefix key (``order`` consecutive lowercase words joined by
a single space) to every word observed after it. Frequency is kept by
repetition: a suffix seen three times appears three times in its list.

Large corpora are cut into fixed-size chunks that overlap by ``order`` words,
so no transition straddling a chunk edge is lost. Each chunk is scanned by
its own task into a local table and merged into the shared table under a
lock; the call returns only after every task has finished.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional

from .normalizer import normalize_text

logger = logging.getLogger(__name__)

Chain = Dict[str, List[str]]

CHUNK_SIZE = 4096

DEFAULT_ORDER = 2
DEFAULT_MAX_REPEAT = 2
DEFAULT_MIN_SENTENCE_LEN = 5
DEFAULT_MAX_SENTENCE_LEN = 25
DEFAULT_PARAGRAPH_BREAK = 5
DEFAULT_STOP_TOKENS = ".!?"


@dataclass(frozen=True)
class MarkovConfig:
    """
    Immutable model configuration.

    Out-of-range values are clamped instead of rejected:
    order, max_sentence_len and paragraph_break fall back to their
    defaults when below 1; max_repeat and min_sentence_len floor at 0;
    empty stop_tokens becomes ".!?".

    min_sentence_len is stored and persisted but not enforced during
    generation.
    """
    order: int = DEFAULT_ORDER
    max_repeat: int = DEFAULT_MAX_REPEAT
    min_sentence_len: int = DEFAULT_MIN_SENTENCE_LEN
    max_sentence_len: int = DEFAULT_MAX_SENTENCE_LEN
    paragraph_break: int = DEFAULT_PARAGRAPH_BREAK
    stop_tokens: str = DEFAULT_STOP_TOKENS

    def __post_init__(self):
        if self.order < 1:
            object.__setattr__(self, "order", DEFAULT_ORDER)
        if self.max_repeat < 0:
            object.__setattr__(self, "max_repeat", 0)
        if self.min_sentence_len < 0:
            object.__setattr__(self, "min_sentence_len", 0)
        if self.max_sentence_len < 1:
            object.__setattr__(self, "max_sentence_len", DEFAULT_MAX_SENTENCE_LEN)
        if self.paragraph_break < 1:
            object.__setattr__(self, "paragraph_break", DEFAULT_PARAGRAPH_BREAK)
        if not self.stop_tokens:
            object.__setattr__(self, "stop_tokens", DEFAULT_STOP_TOKENS)


def tokenize(text: str) -> List[str]:
    """Normalize text and split it on whitespace."""
    return normalize_text(text).split()


def split_chunks(words: List[str], order: int, chunk_size: int = CHUNK_SIZE) -> List[List[str]]:
    """
    Partition words into chunks of ``chunk_size`` start positions.

    Each chunk carries ``order`` extra trailing words so the last prefixes
    of the chunk still see their suffix. A word list with no complete
    transition (fewer than order + 1 words) yields no chunks.
    """
    chunk_size = max(1, chunk_size)
    total = len(words)
    chunks = []
    for start in range(0, total - order, chunk_size):
        end = min(start + chunk_size + order, total)
        chunks.append(words[start:end])
    return chunks


def scan_chunk(chunk: List[str], order: int) -> Chain:
    """Record every (prefix, suffix) transition of a single chunk."""
    local: Chain = {}
    for i in range(len(chunk) - order):
        prefix = " ".join(chunk[i:i + order])
        local.setdefault(prefix, []).append(chunk[i + order])
    return local


def merge_chain(target: Chain, source: Chain) -> None:
    """Append every suffix list of source onto target, in place."""
    for prefix, suffixes in source.items():
        target.setdefault(prefix, []).extend(suffixes)


def count_transitions(chain: Chain) -> int:
    return sum(len(suffixes) for suffixes in chain.values())


def build_chain(
    text: str,
    config: MarkovConfig,
    chunk_size: int = CHUNK_SIZE,
    max_workers: Optional[int] = None,
) -> Chain:
    """
    Build a chain from raw corpus text.

    One task is submitted per chunk; each task merges its local table into
    the result under a lock. All tasks are joined before returning, and the
    first task failure is re-raised.

    Args:
        text: Raw corpus text (normalized here)
        config: Model configuration (only ``order`` is used)
        chunk_size: Words per chunk, excluding the overlap
        max_workers: Thread pool size (None = executor default)

    Returns:
        A new chain; empty when the corpus has fewer than order + 1 words
    """
    words = tokenize(text)
    order = config.order
    chunks = split_chunks(words, order, chunk_size)

    chain: Chain = {}
    if not chunks:
        logger.info(f"[Markov] Corpus too short for order {order}: {len(words)} words")
        return chain

    merge_lock = threading.Lock()

    def _scan_and_merge(chunk: List[str]) -> int:
        local = scan_chunk(chunk, order)
        with merge_lock:
            merge_chain(chain, local)
        return len(local)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_scan_and_merge, chunk) for chunk in chunks]
        for future in as_completed(futures):
            future.result()

    logger.info(
        f"[Markov] Scanned {len(words)} words in {len(chunks)} chunks: "
        f"{len(chain)} prefixes, {count_transitions(chain)} transitions"
    )
    return chain
