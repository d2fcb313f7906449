"""
Tests for move_decompiler/type_utils.py
"""

from move_decompiler.type_utils import (
    base_type_name,
    clean_type,
    first_generic_name,
    generic_arguments,
    is_unit_type,
    split_top_level,
    strip_reference,
    tuple_arity,
)


class TestCleanType:
    def test_trims_whitespace_and_trailing_comma(self):
        assert clean_type("  u64 ,") == "u64"

    def test_normalizes_comma_spacing(self):
        assert clean_type("Table<address,u64>") == "Table<address, u64>"

    def test_collapses_inner_whitespace(self):
        assert clean_type("&mut   Coin<SUI>") == "&mut Coin<SUI>"


class TestSplitTopLevel:
    def test_generic_aware(self):
        assert split_top_level("Coin<A, B>, u64") == ["Coin<A, B>", "u64"]

    def test_nested_parentheses(self):
        assert split_top_level("(u64, bool), address") == ["(u64, bool)", "address"]

    def test_empty_pieces_dropped(self):
        assert split_top_level("") == []
        assert split_top_level("a,") == ["a"]


class TestTypeNames:
    def test_strip_reference(self):
        assert strip_reference("&mut Coin<T>") == "Coin<T>"
        assert strip_reference("&u64") == "u64"

    def test_base_type_name_drops_path_and_generics(self):
        assert base_type_name("&mut 0x2::coin::Coin<0x2::sui::SUI>") == "Coin"
        assert base_type_name("0x2.balance.Balance<T>") == "Balance"
        assert base_type_name("u64") == "u64"

    def test_generic_arguments(self):
        assert generic_arguments("Table<address, vector<u8>>") == ["address", "vector<u8>"]
        assert generic_arguments("u64") == []

    def test_first_generic_name(self):
        assert first_generic_name("Coin<0x2::sui::SUI>") == "SUI"
        assert first_generic_name("u64") is None


class TestUnitAndTuples:
    def test_unit_types(self):
        assert is_unit_type(None)
        assert is_unit_type("")
        assert is_unit_type("()")
        assert is_unit_type("( )")
        assert not is_unit_type("u64")

    def test_tuple_arity(self):
        assert tuple_arity("") == 0
        assert tuple_arity("u64") == 1
        assert tuple_arity("(u64, bool)") == 2
        assert tuple_arity("(Coin<A, B>, u64)") == 2
