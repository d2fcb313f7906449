"""
Helpers for the Move type strings found in disassembly annotations.
"""

import re
from typing import List, Optional

_OPENERS = "<(["
_CLOSERS = ">)]"

_REFERENCE_PREFIX = re.compile(r"^&\s*(?:mut\s+)?")


def clean_type(type_str: str) -> str:
    """Collapse whitespace, normalize comma spacing, drop a trailing comma."""
    cleaned = re.sub(r"\s+", " ", type_str).strip()
    cleaned = re.sub(r"\s*,\s*", ", ", cleaned)
    return re.sub(r",\s*$", "", cleaned).strip()


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """
    Split on ``separator`` only where it is not nested in <>, () or [].

    Empty pieces are dropped, so ``""`` and ``"a,"`` split to ``[]`` and
    ``["a"]``.
    """
    parts = []
    depth = 0
    current = []
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(depth - 1, 0)
        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def strip_reference(type_str: str) -> str:
    """``&mut Coin<T>`` → ``Coin<T>``."""
    return _REFERENCE_PREFIX.sub("", type_str.strip())


def base_type_name(type_str: str) -> str:
    """
    Bare type name without reference, module path or generic arguments.

    ``&mut 0x2::coin::Coin<0x2::sui::SUI>`` → ``Coin``
    """
    stripped = strip_reference(type_str)
    generic_start = stripped.find("<")
    if generic_start != -1:
        stripped = stripped[:generic_start]
    return re.split(r"::|\.", stripped.strip())[-1]


def generic_arguments(type_str: str) -> List[str]:
    """Top-level generic arguments of a type, ``[]`` if it has none."""
    stripped = strip_reference(type_str)
    start = stripped.find("<")
    end = stripped.rfind(">")
    if start == -1 or end <= start:
        return []
    return split_top_level(stripped[start + 1:end])


def first_generic_name(type_str: str) -> Optional[str]:
    """Bare name of the first generic argument, e.g. ``SUI`` for ``Coin<0x2::sui::SUI>``."""
    arguments = generic_arguments(type_str)
    if not arguments:
        return None
    return base_type_name(arguments[0]) or None


def is_unit_type(type_str: Optional[str]) -> bool:
    """True for an absent return type or ``()``."""
    if type_str is None:
        return True
    return re.sub(r"\s+", "", type_str) in ("", "()")


def tuple_arity(type_str: Optional[str]) -> int:
    """Number of values a return type carries: 0 for unit, N for ``(A, B, ...)``."""
    if is_unit_type(type_str):
        return 0
    stripped = type_str.strip()
    if stripped.startswith("(") and stripped.endswith(")"):
        return len(split_top_level(stripped[1:-1]))
    return 1
