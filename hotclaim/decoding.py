from __future__ import annotations

import gzip
import zlib
from typing import Callable, Dict, Optional

import brotli

from .errors import DecodeError

Decoder = Callable[[bytes], bytes]

# Content-Encoding -> распаковщик; всё остальное отдаём как есть
DECODERS: Dict[str, Decoder] = {
    "gzip": gzip.decompress,
    "deflate": zlib.decompress,
    "br": brotli.decompress,
}

_DECODE_ERRORS = (OSError, EOFError, zlib.error, brotli.error)


def register_decoder(name: str, fn: Decoder) -> None:
    DECODERS[name.strip().lower()] = fn


def decode_body(encoding: Optional[str], body: bytes) -> bytes:
    """Decode ``body`` according to its ``Content-Encoding`` header value.

    Unknown or absent encodings (``zstd`` included) pass the body through.
    A truncated or corrupt stream raises :class:`DecodeError`.
    """
    name = (encoding or "").strip().lower()
    fn = DECODERS.get(name)
    if fn is None:
        return body
    try:
        return fn(body)
    except _DECODE_ERRORS as exc:
        raise DecodeError(f"cannot decode {name} body: {exc}") from exc
