"""
Opcode Statistics for Decompiled Modules

Counts how many instructions of a function (or a whole module) the
interpreter recognized, so callers can tell how complete a reconstruction
is likely to be.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from .instruction_tokenizer import InstructionRecord
from .opcodes import classify_opcode, normalize_opcode

logger = logging.getLogger(__name__)


@dataclass
class OpcodeStatistics:
    """Opcode frequency counts for a set of instructions."""
    frequencies: Counter = field(default_factory=Counter)
    unknown: Counter = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return sum(self.frequencies.values())

    @property
    def recognized(self) -> int:
        return self.total - sum(self.unknown.values())

    @property
    def coverage(self) -> float:
        """Fraction of instructions with a known opcode (1.0 when empty)."""
        if self.total == 0:
            return 1.0
        return self.recognized / self.total

    def merge(self, other: "OpcodeStatistics") -> "OpcodeStatistics":
        return OpcodeStatistics(
            frequencies=self.frequencies + other.frequencies,
            unknown=self.unknown + other.unknown,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "recognized": self.recognized,
            "coverage": round(self.coverage, 4),
            "frequencies": dict(sorted(self.frequencies.items())),
            "unknown": dict(sorted(self.unknown.items())),
        }


def collect_statistics(instructions: Iterable[InstructionRecord]) -> OpcodeStatistics:
    """
    Count opcodes, grouping ``*Generic`` variants with their base opcode.

    Args:
        instructions: Tokenized instruction records

    Returns:
        OpcodeStatistics for the given records
    """
    stats = OpcodeStatistics()
    for record in instructions:
        opcode = normalize_opcode(record.opcode)
        stats.frequencies[opcode] += 1
        if classify_opcode(opcode) is None:
            stats.unknown[opcode] += 1
    return stats
