"""String and request-metadata helpers."""

from __future__ import annotations

import random
from typing import Mapping, Sequence, Union

_MetadataValue = Union[str, Sequence[str]]


def generate_slug(text: str) -> str:
    """Lower-case ``text``, dash its spaces and add a random four-digit suffix."""
    slug = text.lower().replace(" ", "-")
    suffix = random.randrange(9000) + 1000
    return f"{slug}-{suffix}"


def extract_from_metadata(metadata: Mapping[str, _MetadataValue] | None, key: str) -> str:
    """Return the first value of ``key`` in request metadata.

    Keys are matched case-insensitively. Raises LookupError when there is no
    metadata or no value for the key.
    """
    if metadata is None:
        raise LookupError("metadata not provided")
    lowered = {name.lower(): value for name, value in metadata.items()}
    values = lowered.get(key.lower())
    if isinstance(values, str):
        values = [values]
    if not values:
        raise LookupError("key not found")
    return values[0]


def to_title_case(name: str) -> str:
    """Upper-case the first character, lower-case the rest and strip."""
    if not name:
        raise ValueError("cannot title-case an empty string")
    return (name[0].upper() + name[1:].lower()).strip()


def to_title_case_words(name: str) -> str:
    """Title-case every space-separated word."""
    return " ".join(to_title_case(part) for part in name.split(" "))