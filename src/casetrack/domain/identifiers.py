"""Matching of tax/national identifiers that arrive in inconsistent formats.

The provider stores identifiers with or without check digits, dots and dashes
(``900.123.456-7`` vs ``900123456``). Both sides are reduced to digits and then
compared by containment in either direction for access checks, or strictly
(equal, or with one trailing check digit) when deciding ownership.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def digits_only(value: str | None) -> str:
    if not value:
        return ""
    return "".join(ch for ch in value if ch.isdigit())


def identifiers_match(left: str | None, right: str | None) -> bool:
    """Return whether two identifiers refer to the same party.

    An identifier without any digit never matches anything.
    """

    a = digits_only(left)
    b = digits_only(right)
    if not a or not b:
        return False
    return a in b or b in a


def identifier_belongs_to(owner: str | None, candidate: str | None) -> bool:
    """Return whether ``candidate`` is ``owner``'s identifier, possibly with a check digit.

    Stricter than :func:`identifiers_match`: only equal digits or the owner's digits
    followed by exactly one trailing check digit.
    """

    a = digits_only(owner)
    b = digits_only(candidate)
    if not a or not b:
        return False
    return b == a or (len(b) == len(a) + 1 and b.startswith(a))


def matches_any(identifier: str | None, candidates: Iterable[str | None]) -> bool:
    return any(identifiers_match(identifier, candidate) for candidate in candidates)


__all__ = ["digits_only", "identifier_belongs_to", "identifiers_match", "matches_any"]
