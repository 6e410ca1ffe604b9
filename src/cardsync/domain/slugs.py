"""Deterministic slugs derived from remote identifiers."""

from __future__ import annotations

import re

_INVALID = re.compile(r"[^a-z0-9-]+")
_DASHES = re.compile(r"-{2,}")


def slugify(value: object) -> str:
    text = _INVALID.sub("-", str(value).strip().lower())
    return _DASHES.sub("-", text).strip("-")


def make_slug(prefix: str, *parts: object) -> str:
    return "-".join([prefix, *(slugify(part) for part in parts)])
