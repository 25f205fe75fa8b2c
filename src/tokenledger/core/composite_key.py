"""
Composite key codec.

A composite key packs a namespace label and an ordered list of components
into one world-state key so that all keys sharing a leading set of
components form a contiguous, range-scannable block:

    "\\x00" + namespace + "\\x00" + part_1 + "\\x00" + ... + part_n + "\\x00"

The leading U+0000 keeps composite keys out of the simple-key space.
U+10FFFF is the highest code point, so ``prefix + MAX_UNICODE_RUNE`` bounds a
partial-key range from above.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from tokenledger.core.ledger_exceptions import DecodeError, ValidationError

COMPOSITE_KEY_NAMESPACE = "\x00"
MIN_UNICODE_RUNE = "\x00"
MAX_UNICODE_RUNE = "\U0010ffff"


def _validate_component(value: str, field: str) -> None:
    if not isinstance(value, str):
        raise ValidationError(
            f"composite key {field} must be a string, got {type(value).__name__}",
            details={"field": field},
        )
    for forbidden in (MIN_UNICODE_RUNE, MAX_UNICODE_RUNE):
        if forbidden in value:
            raise ValidationError(
                f"composite key {field} {value!r} contains U+{ord(forbidden):04X}, "
                "which is reserved as a delimiter",
                details={"field": field},
            )


def make_composite_key(namespace: str, parts: Sequence[str]) -> str:
    """Build a composite key from ``namespace`` and ``parts``.

    Raises:
        ValidationError: If the namespace is empty or any component contains
            a reserved delimiter code point.
    """
    if not namespace:
        raise ValidationError("composite key namespace cannot be empty", details={"field": "namespace"})
    _validate_component(namespace, "namespace")
    key = COMPOSITE_KEY_NAMESPACE + namespace + MIN_UNICODE_RUNE
    for index, part in enumerate(parts):
        _validate_component(part, f"part[{index}]")
        key += part + MIN_UNICODE_RUNE
    return key


def split_composite_key(key: str) -> Tuple[str, List[str]]:
    """Inverse of :func:`make_composite_key`.

    Raises:
        DecodeError: If ``key`` is not a composite key.
    """
    if not key.startswith(COMPOSITE_KEY_NAMESPACE) or not key.endswith(MIN_UNICODE_RUNE) or len(key) < 3:
        raise DecodeError(f"not a composite key: {key!r}")
    components = key[1:-1].split(MIN_UNICODE_RUNE)
    namespace, parts = components[0], components[1:]
    if not namespace:
        raise DecodeError(f"composite key has an empty namespace: {key!r}")
    return namespace, parts


def partial_key_range(namespace: str, partial_parts: Sequence[str]) -> Tuple[str, str]:
    """Half-open ``[start, end)`` range covering every key with the given prefix."""
    start = make_composite_key(namespace, partial_parts)
    return start, start + MAX_UNICODE_RUNE


def is_composite_key(key: str) -> bool:
    return key.startswith(COMPOSITE_KEY_NAMESPACE)


def validate_simple_key(key: str) -> None:
    """Reject keys that are empty or would collide with the composite key space."""
    if not isinstance(key, str) or not key:
        raise ValidationError("state key must be a non-empty string", details={"field": "key"})
    if key.startswith(COMPOSITE_KEY_NAMESPACE):
        raise ValidationError(
            f"first character of the key {key!r} is U+0000, which is reserved for composite keys",
            details={"field": "key"},
        )
