"""
Tests for move_decompiler/instruction_tokenizer.py

Covers:
  - Single instruction lines (operand, annotation, nested parentheses)
  - Local declarations and block labels
  - Skipping of unrecognized lines
"""

import pytest
from move_decompiler.instruction_tokenizer import (
    InstructionRecord,
    LocalDeclaration,
    tokenize_body,
    tokenize_line,
)


# ---------------------------------------------------------------------------
# tokenize_line
# ---------------------------------------------------------------------------

class TestTokenizeLine:
    def test_operand_and_annotation(self):
        record = tokenize_line("0: MoveLoc[0](Arg0: Coin<SUI>)")
        assert record == InstructionRecord(
            offset=0, opcode="MoveLoc", operand="0", annotation="Arg0: Coin<SUI>"
        )

    def test_nested_parentheses_kept_in_annotation(self):
        record = tokenize_line("2: Call(transfer::public_transfer<SUI>(Coin<SUI>,address):())")
        assert record.opcode == "Call"
        assert record.operand is None
        assert record.annotation == "transfer::public_transfer<SUI>(Coin<SUI>,address):()"

    def test_bare_opcode(self):
        record = tokenize_line("3: Ret")
        assert record.opcode == "Ret"
        assert record.operand is None
        assert record.annotation is None

    def test_leading_whitespace(self):
        record = tokenize_line("\t12: LdU64[100]")
        assert record.offset == 12
        assert record.operand == "100"

    @pytest.mark.parametrize("line", ["B0:", "}", "module 0x2.coin {", ""])
    def test_non_instruction(self, line):
        assert tokenize_line(line) is None


# ---------------------------------------------------------------------------
# tokenize_body
# ---------------------------------------------------------------------------

class TestTokenizeBody:
    def test_mixed_body(self):
        body = tokenize_body([
            "L0:\tloc0: u64",
            "B0:",
            "\t0: LdU64[5]",
            "\t1: StLoc[0](loc0: u64)",
            "this line is not an instruction",
            "",
            "\t2: Ret",
        ])
        assert body.declarations == [LocalDeclaration(index=0, label="loc0", type="u64")]
        assert body.labels == ["B0"]
        assert [r.opcode for r in body.instructions] == ["LdU64", "StLoc", "Ret"]

    def test_instruction_order_preserved(self):
        body = tokenize_body(["5: Pop", "1: LdTrue"])
        assert [r.offset for r in body.instructions] == [5, 1]

    def test_empty(self):
        body = tokenize_body([])
        assert body.instructions == []
        assert body.declarations == []
