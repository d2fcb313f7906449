"""
Struct/Function Block Extractor

Carves a Move disassembly listing into struct definitions and function
blocks before the function bodies are handed to the interpreter. Extraction
is best-effort: malformed or truncated blocks are dropped, never raised.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .type_utils import clean_type, split_top_level

logger = logging.getLogger(__name__)

VALID_ABILITIES = ("copy", "drop", "store", "key")

_MODULE_PATTERN = re.compile(r"^\s*module\s+(?:[\w]+(?:\.|::))*(\w+)\s*\{")

# struct Coin<phantom T> has store, key {
_STRUCT_PATTERN = re.compile(
    r"^\s*(?:public\s+)?struct\s+(?P<name>\w+)\s*"
    r"(?:<(?P<type_params>[^{]*)>)?\s*"
    r"(?:has\s+(?P<abilities>[\w\s,]*?))?\s*\{"
)

_FIELD_PATTERN = re.compile(r"^\s*(?P<name>\w+)\s*:\s*(?P<type>.+?),?\s*$")

# public entry transfer<T>(Arg0: Coin<T>, Arg1: address) {
_SIGNATURE_PATTERN = re.compile(
    r"^\s*(?P<visibility>public\s+entry|entry\s+public"
    r"|public\s*\(\s*(?:friend|package)\s*\)|public|entry|friend|private)?\s*"
    r"(?:fun\s+)?(?P<name>\w+)\s*"
    r"(?:<(?P<type_params>[^(]*)>)?\s*"
    r"\((?P<params>[^)]*)\)"
    r"(?:\s*:\s*(?P<return_type>[^{]+))?"
)

_FUNCTION_SPLIT = re.compile(r"\n(?=[ \t]*(?:public|entry|friend|private)\b)")

_RESERVED_NAMES = {"module", "struct", "use", "const"}


class FunctionVisibility(Enum):
    """Visibility of a Move function, valued by its source keyword."""
    PUBLIC = "public"
    PUBLIC_ENTRY = "public entry"
    ENTRY = "entry"
    FRIEND = "public(friend)"
    PRIVATE = "private"

    @classmethod
    def from_keyword(cls, keyword: Optional[str]) -> "FunctionVisibility":
        if not keyword:
            return cls.PRIVATE
        words = re.sub(r"\s+", " ", keyword.strip())
        if words in ("public entry", "entry public"):
            return cls.PUBLIC_ENTRY
        if words == "friend" or words.startswith("public(") or words.startswith("public ("):
            return cls.FRIEND
        if words == "public":
            return cls.PUBLIC
        if words == "entry":
            return cls.ENTRY
        return cls.PRIVATE


@dataclass(frozen=True)
class TypedName:
    """A ``name: type`` pair (struct field or function parameter)."""
    name: str
    type: str


@dataclass
class StructBlock:
    """A struct definition found in the disassembly."""
    name: str
    abilities: List[str] = field(default_factory=list)
    fields: List[TypedName] = field(default_factory=list)
    type_parameters: List[str] = field(default_factory=list)


@dataclass
class FunctionBlock:
    """A function signature plus its raw body lines."""
    visibility: FunctionVisibility
    name: str
    type_parameters: List[str] = field(default_factory=list)
    parameters: List[TypedName] = field(default_factory=list)
    return_type: str = ""
    body_lines: List[str] = field(default_factory=list)


def extract_module_name(lines: List[str]) -> str:
    """Module name from a ``module 0x2.coin {`` header, or ``unknown``."""
    for line in lines:
        match = _MODULE_PATTERN.match(line)
        if match:
            return match.group(1)
    return "unknown"


def _parse_abilities(text: Optional[str]) -> List[str]:
    abilities = []
    for token in (text or "").split(","):
        ability = token.strip()
        if ability in VALID_ABILITIES and ability not in abilities:
            abilities.append(ability)
        elif ability and ability not in VALID_ABILITIES:
            logger.debug(f"Ignoring unknown ability '{ability}'")
    return abilities


def extract_structs(lines: List[str]) -> List[StructBlock]:
    """
    Extract struct definitions using brace-depth tracking.

    A struct that is still open when another struct or function header, or
    the end of the text, is reached is considered malformed and omitted.

    Args:
        lines: Disassembly lines

    Returns:
        Fully closed structs in source order
    """
    structs: List[StructBlock] = []
    current: Optional[StructBlock] = None
    depth = 0

    for line in lines:
        header = _STRUCT_PATTERN.match(line)
        if header:
            if current is not None:
                logger.debug(f"Dropping unterminated struct {current.name}")
            type_params = header.group("type_params")
            current = StructBlock(
                name=header.group("name"),
                abilities=_parse_abilities(header.group("abilities")),
                type_parameters=split_top_level(type_params) if type_params else [],
            )
            depth = line.count("{") - line.count("}")
            if depth <= 0:
                structs.append(current)
                current = None
            continue

        if current is None:
            continue

        if _SIGNATURE_PATTERN.match(line) and _FUNCTION_SPLIT.match("\n" + line):
            logger.debug(f"Dropping unterminated struct {current.name}")
            current = None
            continue

        if depth == 1:
            field_match = _FIELD_PATTERN.match(line.split("}", 1)[0])
            if field_match:
                current.fields.append(TypedName(
                    name=field_match.group("name"),
                    type=clean_type(field_match.group("type")),
                ))

        depth += line.count("{") - line.count("}")
        if depth <= 0:
            structs.append(current)
            current = None

    if current is not None:
        logger.debug(f"Dropping unterminated struct {current.name} at end of text")

    return structs


def parse_parameters(params: str) -> List[TypedName]:
    """Split ``Arg0: Coin<A, B>, Arg1: u64`` on top-level commas."""
    parameters = []
    for part in split_top_level(params):
        match = re.match(r"^(\w+)\s*:\s*(.+)$", part.strip())
        if match:
            parameters.append(TypedName(name=match.group(1), type=clean_type(match.group(2))))
    return parameters


def parse_function_signature(line: str) -> Optional[FunctionBlock]:
    """
    Parse a function header line.

    Returns:
        FunctionBlock without body lines, or None if the line is not a
        function signature
    """
    match = _SIGNATURE_PATTERN.match(line)
    if not match:
        return None

    name = match.group("name")
    if name in _RESERVED_NAMES:
        return None

    type_params = match.group("type_params")
    return_type = match.group("return_type")
    return FunctionBlock(
        visibility=FunctionVisibility.from_keyword(match.group("visibility")),
        name=name,
        type_parameters=[clean_type(p) for p in split_top_level(type_params)] if type_params else [],
        parameters=parse_parameters(match.group("params")),
        return_type=clean_type(return_type) if return_type else "",
    )


def _function_body(header: str, lines: List[str]) -> List[str]:
    """Body lines up to (not including) the brace that closes the function."""
    depth = header.count("{") - header.count("}")
    if depth <= 0:
        return list(lines)

    body = []
    for line in lines:
        depth += line.count("{") - line.count("}")
        if depth <= 0:
            break
        body.append(line)
    return body


def extract_functions(text: str) -> List[FunctionBlock]:
    """
    Split the disassembly on visibility keywords and parse each function.

    Args:
        text: Full disassembly text

    Returns:
        Function blocks in source order; unparseable blocks are dropped
    """
    functions = []
    for block in _FUNCTION_SPLIT.split(text):
        lines = block.split("\n")
        function = parse_function_signature(lines[0])
        if function is None:
            continue
        function.body_lines = _function_body(lines[0], lines[1:])
        functions.append(function)

    logger.debug(f"Extracted {len(functions)} functions")
    return functions
