"""Namespace -> token derivation and mapping construction."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterable

Digest = Callable[[str], str]

TOKEN_PREFIX = "x"
TOKEN_HEX_LENGTH = 16


def md5_hex(value: str) -> str:
    """Default digest primitive: lowercase hex MD5 of the UTF-8 value."""

    return hashlib.md5(value.encode("utf-8")).hexdigest()


def derive_token(name: str, digest: Digest = md5_hex) -> str:
    """Derive the short token a namespace appears as in page text.

    The digest output is deliberately truncated to 64 bits; collisions between
    distinct names are accepted.
    """

    return TOKEN_PREFIX + digest(name.lower())[:TOKEN_HEX_LENGTH]


def parse_namespace_lines(text: str) -> list[str]:
    """Split authored text into namespace names, dropping blank lines."""

    return [line.strip() for line in text.split("\n") if line.strip()]


def build_mapping(names: Iterable[str], digest: Digest = md5_hex) -> dict[str, str]:
    """Build token -> namespace. When two names collide, the later one wins."""

    mapping: dict[str, str] = {}
    for name in names:
        if not name:
            continue
        mapping[derive_token(name, digest)] = name
    return mapping


def preview_lines(names: Iterable[str], digest: Digest = md5_hex) -> list[str]:
    """Render ``<token>  ->  <name>`` lines for an authoring preview."""

    mapping = build_mapping(names, digest)
    return [f"{token}  ->  {name}" for token, name in mapping.items()]
