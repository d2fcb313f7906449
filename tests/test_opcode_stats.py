"""
Tests for move_decompiler/opcode_stats.py
"""

from move_decompiler.instruction_tokenizer import tokenize_line
from move_decompiler.opcode_stats import OpcodeStatistics, collect_statistics


def _records(*lines):
    return [tokenize_line(line) for line in lines]


class TestCollectStatistics:
    def test_counts(self):
        stats = collect_statistics(_records(
            "0: LdU64[1]",
            "1: LdU64[2]",
            "2: Add",
            "3: CallGeneric(coin::value<T>(&Coin<T>):u64)",
            "4: VendorExtension",
        ))
        assert stats.total == 5
        assert stats.recognized == 4
        assert stats.frequencies["LdU64"] == 2
        assert stats.frequencies["Call"] == 1
        assert dict(stats.unknown) == {"VendorExtension": 1}
        assert stats.coverage == 0.8

    def test_empty(self):
        stats = collect_statistics([])
        assert stats.total == 0
        assert stats.coverage == 1.0


class TestOpcodeStatistics:
    def test_merge(self):
        first = collect_statistics(_records("0: Ret"))
        second = collect_statistics(_records("0: Ret", "1: Frob"))
        merged = first.merge(second)
        assert merged.frequencies["Ret"] == 2
        assert merged.unknown["Frob"] == 1
        assert first.total == 1

    def test_to_dict(self):
        stats = collect_statistics(_records("0: Pop", "1: LdTrue", "2: Frob"))
        data = stats.to_dict()
        assert data["total"] == 3
        assert data["recognized"] == 2
        assert data["coverage"] == 0.6667
        assert list(data["frequencies"]) == ["Frob", "LdTrue", "Pop"]
        assert data["unknown"] == {"Frob": 1}

    def test_default_is_empty(self):
        assert OpcodeStatistics().to_dict()["frequencies"] == {}
