"""
Shared pytest fixtures for Markov model tests.
"""
from typing import List

import pytest

from markovtext.config import settings
from markovtext.services.chain import MarkovConfig
from markovtext.services.markov import MarkovModel


SAMPLE_CORPUS = """
The universe is full of amazing wonders and the stars are beautiful tonight.
I love exploring new planets and stars with my friends.
Friends always support each other when the night is dark.
Would you like to play a game together under the stars?
Safety and discipline are very important on a long journey.
Let me tell you about space exploration and the planets beyond the stars.
"""

CAT_CORPUS = "the cat sat on the mat the cat ran"


class FirstChoice:
    """Random source that always picks index 0."""

    def randrange(self, stop: int) -> int:
        return 0


class LastChoice:
    """Random source that always picks the last index."""

    def randrange(self, stop: int) -> int:
        return stop - 1


@pytest.fixture
def sample_corpus() -> str:
    """Multi-sentence corpus text."""
    return SAMPLE_CORPUS


@pytest.fixture
def sample_lines() -> List[str]:
    """Sample corpus as separate documents."""
    return [line for line in SAMPLE_CORPUS.splitlines() if line.strip()]


@pytest.fixture
def cat_corpus() -> str:
    return CAT_CORPUS


@pytest.fixture
def config() -> MarkovConfig:
    return MarkovConfig(order=2, max_repeat=2, min_sentence_len=3, max_sentence_len=8, paragraph_break=2)


@pytest.fixture
def trained_model(sample_corpus, config) -> MarkovModel:
    """Model trained on the sample corpus with a fixed seed."""
    return MarkovModel(config, seed=1234).build(sample_corpus)


@pytest.fixture
def model_dir(tmp_path, monkeypatch):
    """Point MODEL_DIR at a temp directory."""
    directory = tmp_path / "models"
    monkeypatch.setattr(settings, "MODEL_DIR", str(directory))
    return directory


# Helper functions for tests


def sentence_runs(text: str, stop_tokens: str = ".!?") -> List[int]:
    """Word counts of the runs between sentence terminators."""
    runs = []
    count = 0
    for word in text.split():
        count += 1
        if word[-1] in stop_tokens:
            runs.append(count)
            count = 0
    return runs


def longest_run(words: List[str], target: str) -> int:
    """Longest consecutive run of target in words."""
    best = current = 0
    for word in words:
        current = current + 1 if word == target else 0
        best = max(best, current)
    return best
