"""
Random-walk text generation over a trained chain.

The walk starts at a uniformly chosen prefix and repeatedly picks a suffix by
uniform index into the candidate list, so suffixes seen more often in training
are proportionally more likely. Generation rules then shape what is emitted:

- Repetition guard: once the same chain word has been drawn more than
  ``max_repeat`` times in a row, the emitted word is replaced by a random word
  already in the output. The walk itself still follows the drawn word.
- Sentence length: every ``max_sentence_len`` words the current sentence is
  closed with a period and the next word is capitalized; every
  ``paragraph_break`` sentences a paragraph break is inserted.

The seed prefix counts as emitted output: its words open the first sentence
and its last word is the previous word for the repetition guard. A seed
longer than ``max_sentence_len`` (order above the limit) is never split, so
that first sentence is ``order`` words long.

``min_sentence_len`` is not enforced: nothing holds a sentence open until it
reaches the minimum.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Protocol

from .chain import Chain, MarkovConfig
from .errors import BrokenChainError, UntrainedModelError

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = "\n\n"

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


class RandomSource(Protocol):
    """The slice of ``random.Random`` the generator draws from."""

    def randrange(self, stop: int) -> int:
        ...


@dataclass
class GenerationState:
    """Per-call rule counters; never shared between generate calls."""
    sentence_words: int = 0
    sentences: int = 0
    last_word: str = ""
    repeat_count: int = 0

    @classmethod
    def from_seed(cls, seed: List[str]) -> "GenerationState":
        """State after emitting the seed prefix words."""
        if not seed:
            return cls()
        repeats = 0
        while repeats + 1 < len(seed) and seed[-2 - repeats] == seed[-1]:
            repeats += 1
        return cls(sentence_words=len(seed), last_word=seed[-1], repeat_count=repeats)


def random_prefix(chain: Chain, rng: RandomSource) -> str:
    """Pick a prefix key uniformly at random."""
    keys = list(chain)
    return keys[rng.randrange(len(keys))]


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def end_sentence(output: List[str], stop_tokens: str) -> None:
    """Close the sentence at the tail of output with a period."""
    for i in range(len(output) - 1, -1, -1):
        if output[i] == PARAGRAPH_BREAK:
            continue
        if not output[i].endswith(tuple(stop_tokens)):
            output[i] += "."
        return


def apply_generation_rules(
    next_word: str,
    words: List[str],
    output: List[str],
    state: GenerationState,
    config: MarkovConfig,
    rng: RandomSource,
) -> str:
    """
    Return the word to emit for the chain-selected ``next_word``.

    Updates ``state`` and may append sentence punctuation or a paragraph
    break to ``output`` ahead of the returned word.
    """
    display = next_word

    if next_word == state.last_word:
        state.repeat_count += 1
        if state.repeat_count > config.max_repeat:
            display = words[rng.randrange(len(words))]
    else:
        state.repeat_count = 0
    state.last_word = next_word

    # sentence_words counts the words already in the current sentence
    if state.sentence_words >= config.max_sentence_len:
        end_sentence(output, config.stop_tokens)
        state.sentence_words = 0
        state.sentences += 1
        if state.sentences % config.paragraph_break == 0:
            output.append(PARAGRAPH_BREAK)
        display = capitalize(display)
    state.sentence_words += 1

    return display


def post_process_text(text: str) -> str:
    """Collapse whitespace runs to single spaces, keeping paragraph breaks."""
    paragraphs = (" ".join(part.split()) for part in _PARAGRAPH_SPLIT.split(text))
    return PARAGRAPH_BREAK.join(p for p in paragraphs if p)


def generate_text(
    chain: Chain,
    config: MarkovConfig,
    word_count: int,
    rng: RandomSource,
) -> str:
    """
    Generate ``word_count`` words by walking the chain.

    Args:
        chain: Trained prefix -> suffixes table (read only)
        config: Model configuration
        word_count: Number of words to emit (>= 1)
        rng: Random source, typically the model's ``random.Random``

    Returns:
        Generated text with normalized whitespace

    Raises:
        UntrainedModelError: chain is empty
        BrokenChainError: no candidates for the current prefix nor for a
            freshly drawn one
    """
    if not chain:
        raise UntrainedModelError("model not trained")
    if word_count < 1:
        raise ValueError(f"word_count must be positive, got {word_count}")

    prefix = random_prefix(chain, rng)
    words = prefix.split()[:word_count]
    output = list(words)
    window = [w.lower() for w in prefix.split()]
    state = GenerationState.from_seed(words)

    while len(words) < word_count:
        candidates = chain.get(" ".join(window))

        if not candidates:
            prefix = random_prefix(chain, rng)
            logger.debug(f"[Markov] Dead end at {' '.join(window)!r}, restarting from {prefix!r}")
            window = prefix.lower().split()
            candidates = chain.get(prefix)
            if not candidates:
                raise BrokenChainError(f"broken chain: no suffixes for prefix {prefix!r}")

        next_word = candidates[rng.randrange(len(candidates))]
        display = apply_generation_rules(next_word, words, output, state, config, rng)

        window.append(next_word.lower())
        if len(window) > config.order:
            window = window[-config.order:]

        words.append(display)
        output.append(display)

    return post_process_text(" ".join(output))
