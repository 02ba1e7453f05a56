"""Deterministic omap key and value generation.

Keys mimic the RGW multipart-upload meta entries that pile up in bucket index
objects: ``<prefix><counter><suffix>.<producer_tag>``. The producer tag keeps
the key spaces of concurrent writers on one object disjoint.
"""

from __future__ import annotations

from typing import Iterable


KEY_PREFIX = "08b911c5-a313-4c06-a46d-451d064c6570.4100."
KEY_SUFFIX = "__multipart_my-multipart-key-1.2~l423STlG8bMdwMMCIW-AWzwCZ8wlX92.meta"

FILLER = b"now is the time for all good beings"
PLACEHOLDER = b"<nihil>"


class KeySequence:
    """Infinite, strictly increasing key sequence for one producer."""

    def __init__(
        self,
        producer_tag: int,
        prefix: str = KEY_PREFIX,
        suffix: str = KEY_SUFFIX,
        counter_width: int = 0,
    ) -> None:
        if producer_tag < 1:
            raise ValueError(f"producer_tag must be >= 1, got {producer_tag}")
        if counter_width < 0:
            raise ValueError(f"counter_width must be >= 0, got {counter_width}")
        self.producer_tag = producer_tag
        self.prefix = prefix
        self.suffix = suffix
        self.counter_width = counter_width
        self.counter = 0

    def next_key(self) -> str:
        """Advance the counter and return its key."""
        self.counter += 1
        return self.format_key(self.counter)

    def format_key(self, counter: int) -> str:
        if self.counter_width:
            digits = str(counter).zfill(self.counter_width)
        else:
            digits = str(counter)
        return f"{self.prefix}{digits}{self.suffix}.{self.producer_tag}"

    def __iter__(self):
        return self

    def __next__(self) -> str:
        return self.next_key()


def generate_value(size: int) -> bytes:
    """Return *size* bytes of filler."""
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size}")
    repeats = size // len(FILLER) + 1
    return (FILLER * repeats)[:size]


def ensure_disjoint_tags(tags: Iterable[int]) -> list[int]:
    """Check that producer tags are positive and unique.

    Concurrent inserts into one object rely on this to keep their key spaces
    apart.
    """
    tags = list(tags)
    if not tags:
        raise ValueError("at least one producer tag is required")
    bad = [t for t in tags if t < 1]
    if bad:
        raise ValueError(f"producer tags must be >= 1: {bad}")
    if len(set(tags)) != len(tags):
        dupes = sorted({t for t in tags if tags.count(t) > 1})
        raise ValueError(f"duplicate producer tags: {dupes}")
    return tags
