"""Shared disassembly samples."""

import pytest


TRANSFER_DISASSEMBLY = """\
module 0x2.example {
public entry transfer_coin(coin: Coin<SUI>, recipient: address) {
B0:
	0: MoveLoc[0](Arg0: Coin<SUI>)
	1: MoveLoc[1](Arg1: address)
	2: Call(transfer::public_transfer<SUI>(Coin<SUI>,address):())
	3: Ret
}
}
"""

POOL_DISASSEMBLY = """\
// Move bytecode v6
module 0x2.pool {
struct Pool<phantom A, phantom B> has key, store {
	id: UID,
	reserve_a: Balance<A>,
	reserve_b: Balance<B>
}

struct Marker has copy, drop {}

public swap<A, B>(Arg0: &mut Pool<A, B>, Arg1: Coin<A>, Arg2: u64, Arg3: &mut TxContext): Coin<B> {
L4:	loc0: u64
B0:
	0: CopyLoc[2](Arg2: u64)
	1: StLoc[4](loc0: u64)
	2: MoveLoc[0](Arg0: &mut Pool<A, B>)
	3: MoveLoc[1](Arg1: Coin<A>)
	4: CopyLoc[4](loc0: u64)
	5: MoveLoc[3](Arg3: &mut TxContext)
	6: Call(swap_inner<A, B>(&mut Pool<A, B>, Coin<A>, u64, &mut TxContext): Coin<B>)
	7: Ret
}

public fun noop() {
}

entry fun init(Arg0: &mut TxContext) {
B0:
	0: Ret
}
}
"""


@pytest.fixture
def transfer_disassembly():
    return TRANSFER_DISASSEMBLY


@pytest.fixture
def pool_disassembly():
    return POOL_DISASSEMBLY
