"""
Binary model format and model file I/O.

Layout::

    magic  b"MKVT"   4 bytes
    version          1 byte   (FORMAT_VERSION)
    payload length   4 bytes  big-endian
    payload          zlib-compressed UTF-8 JSON
                     {"config": {...}, "chain": {prefix: [suffix, ...]}}

Files are written atomically: bytes go to a temp file in the target
directory which is then renamed over the destination.
"""
from __future__ import annotations

import json
import logging
import os
import struct
import tempfile
import zlib
from dataclasses import asdict, fields
from importlib import resources
from pathlib import Path
from typing import Tuple, Union

from .chain import Chain, MarkovConfig
from .errors import DecodingError, EncodingError

logger = logging.getLogger(__name__)

MAGIC = b"MKVT"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sBI")

_INT_FIELDS = ("order", "max_repeat", "min_sentence_len", "max_sentence_len", "paragraph_break")


def serialize(config: MarkovConfig, chain: Chain) -> bytes:
    """Encode a configuration and chain into the binary model format."""
    try:
        payload = json.dumps(
            {"config": asdict(config), "chain": chain},
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")
        body = zlib.compress(payload)
        return _HEADER.pack(MAGIC, FORMAT_VERSION, len(body)) + body
    except (TypeError, ValueError, UnicodeEncodeError, struct.error, zlib.error) as e:
        raise EncodingError(f"failed to encode model: {e}") from e


def _decode_config(raw: object) -> MarkovConfig:
    if not isinstance(raw, dict):
        raise DecodingError("config must be an object")

    known = {f.name for f in fields(MarkovConfig)}
    values = {}
    for key, value in raw.items():
        if key not in known:
            continue
        if key in _INT_FIELDS:
            if not isinstance(value, int) or isinstance(value, bool):
                raise DecodingError(f"config field {key!r} must be an integer")
        elif not isinstance(value, str):
            raise DecodingError(f"config field {key!r} must be a string")
        values[key] = value
    return MarkovConfig(**values)


def _decode_chain(raw: object) -> Chain:
    if not isinstance(raw, dict):
        raise DecodingError("chain must be an object")

    chain: Chain = {}
    for prefix, suffixes in raw.items():
        if not isinstance(suffixes, list) or not suffixes:
            raise DecodingError(f"prefix {prefix!r} has no suffix list")
        if not all(isinstance(s, str) for s in suffixes):
            raise DecodingError(f"prefix {prefix!r} has non-string suffixes")
        chain[prefix] = suffixes
    return chain


def deserialize(data: bytes) -> Tuple[MarkovConfig, Chain]:
    """
    Decode bytes produced by ``serialize``.

    Raises:
        DecodingError: bad header, unknown version, truncation, or a payload
            that does not describe a model
    """
    if len(data) < _HEADER.size:
        raise DecodingError(f"model data too short: {len(data)} bytes")

    magic, version, length = _HEADER.unpack_from(data)
    if magic != MAGIC:
        raise DecodingError("not a markov model (bad magic)")
    if version != FORMAT_VERSION:
        raise DecodingError(f"unsupported model format version {version}")

    body = data[_HEADER.size:]
    if len(body) != length:
        raise DecodingError(f"model payload is {len(body)} bytes, expected {length}")

    try:
        raw = json.loads(zlib.decompress(body).decode("utf-8"))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodingError(f"corrupt model payload: {e}") from e

    if not isinstance(raw, dict) or "config" not in raw or "chain" not in raw:
        raise DecodingError("model payload missing config or chain")

    return _decode_config(raw["config"]), _decode_chain(raw["chain"])


def save_model_file(data: bytes, path: Union[str, Path]) -> Path:
    """
    Atomically write model bytes to ``path``, creating parent directories.

    A reader never sees a partially written file: the bytes land in a temp
    file beside the target and are moved into place with ``os.replace``.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"[Store] Saved model to {path} ({len(data)} bytes)")
    return path


def read_model_file(path: Union[str, Path]) -> bytes:
    """Read model bytes from a filesystem path."""
    path = Path(path)
    data = path.read_bytes()
    logger.info(f"[Store] Read model from {path} ({len(data)} bytes)")
    return data


def read_embedded(package: Union[str, Path], resource_path: str) -> bytes:
    """
    Read model bytes from a bundled, read-only resource set.

    Args:
        package: Dotted package name, or a root directory (any Traversable)
        resource_path: "/"-separated path below the root, e.g. "models/literature.mkv"
    """
    root = resources.files(package) if isinstance(package, str) else package
    resource = root.joinpath(*[p for p in resource_path.split("/") if p])
    if not resource.is_file():
        raise FileNotFoundError(f"embedded resource not found: {resource_path}")
    data = resource.read_bytes()
    logger.info(f"[Store] Read embedded model {resource_path} ({len(data)} bytes)")
    return data
