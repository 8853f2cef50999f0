"""
Word-level Markov chain text generator (CPU-only).

A MarkovModel owns its configuration, its chain and its random source.
Training scans the corpus in parallel chunks; generation walks the chain
with repetition and sentence-length rules; models persist to a compact
binary format and reload without the corpus.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from markovtext.config import settings
from markovtext.utils.rwlock import ReadWriteLock

from .chain import CHUNK_SIZE, Chain, MarkovConfig, build_chain, count_transitions, merge_chain
from .generator import generate_text
from .store import deserialize, read_embedded, read_model_file, save_model_file, serialize

logger = logging.getLogger(__name__)


@dataclass
class ChainStats:
    """Size of a trained chain."""
    order: int = 0
    prefixes: int = 0
    transitions: int = 0
    vocabulary: int = 0


def default_markov_config() -> MarkovConfig:
    """Model configuration from service settings."""
    return MarkovConfig(
        order=settings.MARKOV_ORDER,
        max_repeat=settings.MARKOV_MAX_REPEAT,
        min_sentence_len=settings.MARKOV_MIN_SENTENCE_LEN,
        max_sentence_len=settings.MARKOV_MAX_SENTENCE_LEN,
        paragraph_break=settings.MARKOV_PARAGRAPH_BREAK,
        stop_tokens=settings.MARKOV_STOP_TOKENS,
    )


class MarkovModel:
    """
    Trainable, persistable Markov text model.

    Generation holds the lock shared, so concurrent generate calls run
    together; training and loading hold it exclusively.
    """

    def __init__(
        self,
        config: Optional[MarkovConfig] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize an untrained model.

        Args:
            config: Model configuration (defaults from settings)
            rng: Random source to draw from; takes precedence over seed
            seed: Seed for a private random.Random (None = time-based)
        """
        self.config = config if config is not None else default_markov_config()
        self.chain: Chain = {}
        if rng is None:
            rng = random.Random(seed if seed is not None else time.time_ns())
        self.rng = rng
        self._lock = ReadWriteLock()

    @property
    def order(self) -> int:
        return self.config.order

    @property
    def is_trained(self) -> bool:
        return bool(self.chain)

    def build(
        self,
        text: str,
        chunk_size: int = CHUNK_SIZE,
        max_workers: Optional[int] = None,
    ) -> "MarkovModel":
        """
        Train on raw corpus text.

        The new transitions are built off to the side and merged in under the
        exclusive lock, so a concurrent reader sees either the old chain or
        the fully trained one. Calling build again appends to the chain.
        """
        built = build_chain(text, self.config, chunk_size=chunk_size, max_workers=max_workers)
        with self._lock.write():
            merge_chain(self.chain, built)
        return self

    def train(self, corpus: List[str], **kwargs) -> "MarkovModel":
        """Train on a list of documents, newline-joined."""
        return self.build("\n".join(corpus), **kwargs)

    def generate(self, word_count: int) -> str:
        """
        Generate ``word_count`` words of text.

        Raises:
            UntrainedModelError: the chain is empty
            BrokenChainError: the walk ran out of candidates
        """
        with self._lock.read():
            return generate_text(self.chain, self.config, word_count, self.rng)

    def get_stats(self) -> ChainStats:
        with self._lock.read():
            vocabulary = set()
            for prefix, suffixes in self.chain.items():
                vocabulary.update(prefix.split())
                vocabulary.update(suffixes)
            return ChainStats(
                order=self.config.order,
                prefixes=len(self.chain),
                transitions=count_transitions(self.chain),
                vocabulary=len(vocabulary),
            )

    # --- persistence ---
    def save(self) -> bytes:
        """Encode configuration and chain into model bytes."""
        with self._lock.read():
            return serialize(self.config, self.chain)

    def load(self, data: bytes) -> "MarkovModel":
        """Replace configuration and chain with those decoded from data."""
        config, chain = deserialize(data)
        with self._lock.write():
            self.config = config
            self.chain = chain
        logger.info(f"[Markov] Loaded model: order {config.order}, {len(chain)} prefixes")
        return self

    def save_to_file(self, path: Union[str, Path]) -> Path:
        return save_model_file(self.save(), path)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "MarkovModel":
        """Load a model saved with ``save_to_file``."""
        return cls(**kwargs).load(read_model_file(path))

    @classmethod
    def from_embedded(cls, package: Union[str, Path], resource_path: str, **kwargs) -> "MarkovModel":
        """Load a model from a bundled resource (see ``read_embedded``)."""
        return cls(**kwargs).load(read_embedded(package, resource_path))


def train_from_corpus(
    lines: List[str],
    config: Optional[MarkovConfig] = None,
    seed: Optional[int] = None,
) -> MarkovModel:
    model = MarkovModel(config, seed=seed)
    model.train(
        lines,
        chunk_size=settings.TRAIN_CHUNK_SIZE,
        max_workers=settings.TRAIN_MAX_WORKERS,
    )
    return model
