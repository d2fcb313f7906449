"""
Instruction Tokenizer

Splits the body lines of one disassembled function into instruction records,
local variable declarations and basic-block labels. Lines that match none of
these shapes are skipped without error.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .type_utils import clean_type

logger = logging.getLogger(__name__)

# 12: Call(transfer::public_transfer<SUI>(Coin<SUI>,address):())
# The annotation is greedy so nested parentheses stay inside it.
_INSTRUCTION_PATTERN = re.compile(
    r"^(?P<offset>\d+):\s*(?P<opcode>[A-Za-z_]\w*)"
    r"(?:\[(?P<operand>[^\]]*)\])?"
    r"(?:\s*\((?P<annotation>.*)\))?\s*$"
)

# L2:	loc0: u64
_DECLARATION_PATTERN = re.compile(
    r"^L(?P<index>\d+):\s*(?P<label>\w+)\s*:\s*(?P<type>.+?)\s*$"
)

# B0:
_LABEL_PATTERN = re.compile(r"^(?P<label>B\d+):\s*$")


@dataclass
class InstructionRecord:
    """One decoded ``offset: Opcode[operand](annotation)`` line."""
    offset: int
    opcode: str
    operand: Optional[str] = None
    annotation: Optional[str] = None


@dataclass
class LocalDeclaration:
    """A ``L<index>: <label>: <type>`` line declaring a function local."""
    index: int
    label: str
    type: str


@dataclass
class TokenizedBody:
    """Everything the tokenizer recognized in one function body."""
    instructions: List[InstructionRecord] = field(default_factory=list)
    declarations: List[LocalDeclaration] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)


def tokenize_line(line: str) -> Optional[InstructionRecord]:
    """Parse a single instruction line; None if the line is not one."""
    match = _INSTRUCTION_PATTERN.match(line.strip())
    if not match:
        return None
    operand = match.group("operand")
    annotation = match.group("annotation")
    return InstructionRecord(
        offset=int(match.group("offset")),
        opcode=match.group("opcode"),
        operand=operand.strip() if operand is not None else None,
        annotation=annotation.strip() if annotation is not None else None,
    )


def tokenize_body(lines: List[str]) -> TokenizedBody:
    """
    Tokenize the raw body lines of one function.

    Args:
        lines: Body lines, without the signature line

    Returns:
        TokenizedBody with instructions in source order
    """
    body = TokenizedBody()
    skipped = 0

    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue

        declaration = _DECLARATION_PATTERN.match(stripped)
        if declaration:
            body.declarations.append(LocalDeclaration(
                index=int(declaration.group("index")),
                label=declaration.group("label"),
                type=clean_type(declaration.group("type")),
            ))
            continue

        label = _LABEL_PATTERN.match(stripped)
        if label:
            body.labels.append(label.group("label"))
            continue

        record = tokenize_line(stripped)
        if record is not None:
            body.instructions.append(record)
        else:
            skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} non-instruction lines")
    return body
