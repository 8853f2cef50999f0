"""
Corpus loading: a single UTF-8 text file, or every .txt file in a directory.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

CORPUS_SUFFIX = ".txt"


def load_text_corpus(path: Union[str, Path]) -> str:
    """Read a whole corpus file as UTF-8 (undecodable bytes are replaced)."""
    path = Path(path)
    text = path.read_text(encoding="utf-8", errors="replace")
    logger.info(f"[Corpus] Loaded {path} ({len(text)} chars)")
    return text


def load_text_dir(directory: Union[str, Path]) -> str:
    """
    Concatenate every .txt file in a directory, in file-name order.

    Each file's text is followed by a newline. Subdirectories and other
    extensions are skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"not a corpus directory: {directory}")

    parts = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if path.is_file() and path.suffix == CORPUS_SUFFIX:
            parts.append(load_text_corpus(path))
            parts.append("\n")

    logger.info(f"[Corpus] Loaded {len(parts) // 2} files from {directory}")
    return "".join(parts)
