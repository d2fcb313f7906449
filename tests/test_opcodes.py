"""
Tests for move_decompiler/opcodes.py

Covers:
  - Opcode → family classification
  - Generic opcode normalization
  - Binary operator table
  - Fallback descriptions
"""

import pytest
from move_decompiler.opcodes import (
    BINARY_OPERATORS,
    OPCODE_DESCRIPTIONS,
    OPCODE_FAMILIES,
    OpcodeFamily,
    classify_opcode,
    describe_opcode,
    normalize_opcode,
)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassifyOpcode:
    @pytest.mark.parametrize("opcode,family", [
        ("CopyLoc", OpcodeFamily.LOCAL_LOAD),
        ("MoveLoc", OpcodeFamily.LOCAL_LOAD),
        ("MutBorrowLoc", OpcodeFamily.LOCAL_BORROW),
        ("StLoc", OpcodeFamily.LOCAL_STORE),
        ("Call", OpcodeFamily.CALL),
        ("LdU8", OpcodeFamily.LOAD_INTEGER),
        ("LdU256", OpcodeFamily.LOAD_INTEGER),
        ("CastU128", OpcodeFamily.CAST),
        ("Xor", OpcodeFamily.BINARY_OP),
        ("Neq", OpcodeFamily.BINARY_OP),
        ("BrFalse", OpcodeFamily.BRANCH),
        ("VecSwap", OpcodeFamily.VEC_SWAP),
        ("Nop", OpcodeFamily.NOP),
    ])
    def test_known_opcodes(self, opcode, family):
        assert classify_opcode(opcode) == family

    def test_generic_variants_share_base_family(self):
        assert classify_opcode("CallGeneric") == OpcodeFamily.CALL
        assert classify_opcode("PackGeneric") == OpcodeFamily.PACK
        assert classify_opcode("ImmBorrowFieldGeneric") == OpcodeFamily.FIELD_BORROW

    def test_unknown_opcode(self):
        assert classify_opcode("VendorExtension") is None

    def test_every_family_is_used(self):
        assert set(OPCODE_FAMILIES.values()) == set(OpcodeFamily)


class TestNormalizeOpcode:
    def test_strips_generic_suffix(self):
        assert normalize_opcode("UnpackGeneric") == "Unpack"

    def test_unknown_base_kept(self):
        assert normalize_opcode("FrobGeneric") == "FrobGeneric"

    def test_plain_opcode_unchanged(self):
        assert normalize_opcode("Ret") == "Ret"


# ---------------------------------------------------------------------------
# Operators & descriptions
# ---------------------------------------------------------------------------

class TestBinaryOperators:
    def test_symbols(self):
        assert BINARY_OPERATORS["Add"] == "+"
        assert BINARY_OPERATORS["And"] == "&&"
        assert BINARY_OPERATORS["Or"] == "||"
        assert BINARY_OPERATORS["Shl"] == "<<"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            BINARY_OPERATORS["Pow"] = "**"


class TestDescribeOpcode:
    def test_every_opcode_has_description(self):
        assert set(OPCODE_DESCRIPTIONS) == set(OPCODE_FAMILIES)

    def test_description_text(self):
        assert describe_opcode("MoveLoc") == "Move local variable (consume)"
        assert describe_opcode("LdU64") == "Load u64 constant"
        assert describe_opcode("Add") == "Binary operation (+)"

    def test_generic_description(self):
        assert describe_opcode("PackGeneric") == "Create struct instance"

    def test_unknown(self):
        assert describe_opcode("VendorExtension") is None
