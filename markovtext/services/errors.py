"""
Error kinds raised by the Markov text services.
"""


class MarkovError(Exception):
    """Base class for all Markov model failures."""


class UntrainedModelError(MarkovError):
    """Generation was requested on a model with an empty chain."""


class BrokenChainError(MarkovError):
    """The random walk found no suffix candidates, even after a restart."""


class EncodingError(MarkovError):
    """A model could not be encoded into the binary model format."""


class DecodingError(MarkovError):
    """Bytes could not be decoded into a model (malformed or truncated)."""
