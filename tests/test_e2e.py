"""
End-to-End Integration Tests

Runs complete disassembly listings through:
  1. Struct/function extraction
  2. Instruction tokenization
  3. Stack machine interpretation with variable naming
  4. Rendering (and the annotated fallback)
  5. Batch decompilation
"""

import pytest
from unittest.mock import patch
from move_decompiler import (
    BatchDecompiler,
    DecompilerSettings,
    annotate_disassembly,
    decompile_module,
    decompile_to_move,
    decompile_with_report,
)


# ---------------------------------------------------------------------------
# Test Disassembly
# ---------------------------------------------------------------------------

VAULT_DISASSEMBLY = """\
// Move bytecode v6
module 0x7.vault {
use 0x2::balance;
use 0x2::coin;

struct Vault has key {
	id: UID,
	balance: Balance<SUI>,
	deposits: u64
}

public deposit(Arg0: &mut Vault, Arg1: Coin<SUI>) {
B0:
	0: CopyLoc[0](Arg0: &mut Vault)
	1: MutBorrowField[0](Vault.balance: Balance<SUI>)
	2: MoveLoc[1](Arg1: Coin<SUI>)
	3: Call(coin::into_balance<SUI>(Coin<SUI>): Balance<SUI>)
	4: Call(balance::join<SUI>(&mut Balance<SUI>, Balance<SUI>): u64)
	5: Pop
	6: Ret
}

public balance_of(Arg0: &Vault): u64 {
B0:
	0: MoveLoc[0](Arg0: &Vault)
	1: ImmBorrowField[0](Vault.balance: Balance<SUI>)
	2: Call(balance::value<SUI>(&Balance<SUI>): u64)
	3: Ret
}

public(friend) check(Arg0: u64) {
B0:
	0: CopyLoc[0](Arg0: u64)
	1: LdU64[0]
	2: Gt
	3: BrTrue[6]
B1:
	4: LdConst[0](u64: 1)
	5: Abort
B2:
	6: VendorMagic[9]
	7: Ret
}
}
"""

VAULT_SOURCE = """\
// Decompiled Move module: vault
// Note: Variable names and comments are approximated

module vault {

    struct Vault has key {
        id: UID,
        balance: Balance<SUI>,
        deposits: u64,
    }

    public fun deposit(vault: &mut Vault, deposit_coin: Coin<SUI>) {
        _ = balance::join(&mut vault.balance, coin::into_balance(deposit_coin));
        return;
    }

    public fun balance_of(vault: &Vault): u64 {
        return balance::value(&vault.balance);
    }

    public(friend) fun check(amount: u64) {
        // if ((amount > 0)) goto 6
        abort 1;
        return;
    }

}"""

SLOT_TRANSFER_DISASSEMBLY = """\
module 0x2.example {
public entry send(Arg0: Coin<SUI>, Arg1: address) {
B0:
	0: MoveLoc[0](Arg0: Coin<SUI>)
	1: MoveLoc[1](Arg1: address)
	2: Call(transfer::public_transfer<SUI>(Coin<SUI>,address):())
	3: Ret
}
}
"""

MALFORMED_DISASSEMBLY = """\
module 0x3.broken {
struct Kept has copy, drop {
	value: u64
}
struct Truncated has key {
	id: UID,
public entry run(Arg0: u64) {
B0:
	0: MoveLoc[0](Arg0: u64)
	1: Pop
	2: Ret
}
"""


# ---------------------------------------------------------------------------
# Full module
# ---------------------------------------------------------------------------

class TestVaultModule:
    def test_rendered_source(self):
        assert decompile_to_move(VAULT_DISASSEMBLY) == VAULT_SOURCE

    def test_unknown_opcode_counted(self):
        module = decompile_module(VAULT_DISASSEMBLY)
        check = module.functions[2]
        assert check.statistics.unknown["VendorMagic"] == 1
        assert check.statistics.total == 8
        assert check.statements[-1] == "return;"

    def test_use_lines_are_not_functions(self):
        module = decompile_module(VAULT_DISASSEMBLY)
        assert [f.name for f in module.functions] == ["deposit", "balance_of", "check"]

    def test_deterministic(self):
        assert decompile_to_move(VAULT_DISASSEMBLY) == decompile_to_move(VAULT_DISASSEMBLY)


class TestTransferScenario:
    def test_named_parameters(self, transfer_disassembly):
        source = decompile_to_move(transfer_disassembly)
        assert (
            "    public entry fun transfer_coin(coin: Coin<SUI>, recipient: address) {\n"
            "        transfer::public_transfer(coin, recipient);\n"
            "        return;\n"
            "    }"
        ) in source

    def test_slot_parameters_get_inferred_names(self):
        module = decompile_module(SLOT_TRANSFER_DISASSEMBLY)
        assert module.functions[0].statements == [
            "transfer::public_transfer(sui_coin, recipient);",
            "return;",
        ]


class TestMalformedInput:
    def test_truncated_struct_omitted(self):
        module = decompile_module(MALFORMED_DISASSEMBLY)
        assert [s.name for s in module.structs] == ["Kept"]
        assert module.functions[0].statements == ["_ = amount;", "return;"]

    def test_garbage_input_does_not_raise(self):
        report = decompile_with_report("not a disassembly at all\n{{{")
        assert not report.used_fallback
        assert report.module.module_name == "unknown"
        assert report.module.functions == []

    def test_fatal_failure_falls_back(self):
        with patch(
            "move_decompiler.source_renderer.render_module",
            side_effect=KeyError("renderer"),
        ):
            source = decompile_to_move(VAULT_DISASSEMBLY)
        assert source == annotate_disassembly(VAULT_DISASSEMBLY)
        assert "        // Read through reference" not in source
        assert "        // Binary operation (>)" in source


class TestBatch:
    def test_batch_matches_single_module(self, transfer_disassembly):
        settings = DecompilerSettings(max_workers=3)
        result = BatchDecompiler(settings).decompile_batch({
            "vault": VAULT_DISASSEMBLY,
            "example": transfer_disassembly,
            "broken": MALFORMED_DISASSEMBLY,
        })
        assert [m.name for m in result.modules] == ["vault", "example", "broken"]
        assert result.modules[0].source == VAULT_SOURCE
        assert result.success
        assert result.combined_output().startswith("// ===== Module: vault =====\n\n// Decompiled Move module: vault")
