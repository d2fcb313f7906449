"""
Move Opcode Table

Classifies every Move bytecode opcode the decompiler understands into an
``OpcodeFamily``. Each family has exactly one behaviour in the stack machine
interpreter, and a short human-readable description used when the pipeline
falls back to annotating the raw disassembly.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, Optional


class OpcodeFamily(Enum):
    """Groups of opcodes that share one stack/statement effect."""
    LOCAL_LOAD = "local_load"
    LOCAL_BORROW = "local_borrow"
    LOCAL_STORE = "local_store"
    CALL = "call"
    PACK = "pack"
    UNPACK = "unpack"
    RETURN = "return"
    FREEZE_REF = "freeze_ref"
    LOAD_INTEGER = "load_integer"
    LOAD_BOOL = "load_bool"
    LOAD_CONST = "load_const"
    POP = "pop"
    BRANCH = "branch"
    ABORT = "abort"
    FIELD_BORROW = "field_borrow"
    READ_REF = "read_ref"
    WRITE_REF = "write_ref"
    BINARY_OP = "binary_op"
    NOT = "not"
    CAST = "cast"
    VEC_PACK = "vec_pack"
    VEC_LEN = "vec_len"
    VEC_BORROW = "vec_borrow"
    VEC_PUSH_BACK = "vec_push_back"
    VEC_POP_BACK = "vec_pop_back"
    VEC_SWAP = "vec_swap"
    NOP = "nop"


# ---------------------------------------------------------------------------
# Opcode → family table
# ---------------------------------------------------------------------------

_INTEGER_WIDTHS = ("8", "16", "32", "64", "128", "256")

_FAMILIES: Dict[str, OpcodeFamily] = {
    "CopyLoc": OpcodeFamily.LOCAL_LOAD,
    "MoveLoc": OpcodeFamily.LOCAL_LOAD,
    "ImmBorrowLoc": OpcodeFamily.LOCAL_BORROW,
    "MutBorrowLoc": OpcodeFamily.LOCAL_BORROW,
    "StLoc": OpcodeFamily.LOCAL_STORE,
    "Call": OpcodeFamily.CALL,
    "Pack": OpcodeFamily.PACK,
    "Unpack": OpcodeFamily.UNPACK,
    "Ret": OpcodeFamily.RETURN,
    "FreezeRef": OpcodeFamily.FREEZE_REF,
    "LdTrue": OpcodeFamily.LOAD_BOOL,
    "LdFalse": OpcodeFamily.LOAD_BOOL,
    "LdConst": OpcodeFamily.LOAD_CONST,
    "Pop": OpcodeFamily.POP,
    "BrTrue": OpcodeFamily.BRANCH,
    "BrFalse": OpcodeFamily.BRANCH,
    "Branch": OpcodeFamily.BRANCH,
    "Abort": OpcodeFamily.ABORT,
    "ImmBorrowField": OpcodeFamily.FIELD_BORROW,
    "MutBorrowField": OpcodeFamily.FIELD_BORROW,
    "ReadRef": OpcodeFamily.READ_REF,
    "WriteRef": OpcodeFamily.WRITE_REF,
    "Not": OpcodeFamily.NOT,
    "VecPack": OpcodeFamily.VEC_PACK,
    "VecLen": OpcodeFamily.VEC_LEN,
    "VecImmBorrow": OpcodeFamily.VEC_BORROW,
    "VecMutBorrow": OpcodeFamily.VEC_BORROW,
    "VecPushBack": OpcodeFamily.VEC_PUSH_BACK,
    "VecPopBack": OpcodeFamily.VEC_POP_BACK,
    "VecSwap": OpcodeFamily.VEC_SWAP,
    "Nop": OpcodeFamily.NOP,
}

BINARY_OPERATORS = MappingProxyType({
    # arithmetic
    "Add": "+",
    "Sub": "-",
    "Mul": "*",
    "Div": "/",
    "Mod": "%",
    "BitOr": "|",
    "BitAnd": "&",
    "Xor": "^",
    "Shl": "<<",
    "Shr": ">>",
    # comparison
    "Lt": "<",
    "Le": "<=",
    "Gt": ">",
    "Ge": ">=",
    "Eq": "==",
    "Neq": "!=",
    # logical
    "And": "&&",
    "Or": "||",
})

for _width in _INTEGER_WIDTHS:
    _FAMILIES[f"LdU{_width}"] = OpcodeFamily.LOAD_INTEGER
    _FAMILIES[f"CastU{_width}"] = OpcodeFamily.CAST
for _name in BINARY_OPERATORS:
    _FAMILIES[_name] = OpcodeFamily.BINARY_OP

OPCODE_FAMILIES = MappingProxyType(_FAMILIES)

# Opcodes that exist in a ``<Name>Generic`` flavour carrying instantiated types.
_GENERIC_SUFFIX = "Generic"


def normalize_opcode(opcode: str) -> str:
    """Map ``CallGeneric``/``PackGeneric``/... onto their base opcode."""
    if opcode.endswith(_GENERIC_SUFFIX):
        base = opcode[: -len(_GENERIC_SUFFIX)]
        if base in OPCODE_FAMILIES:
            return base
    return opcode


def classify_opcode(opcode: str) -> Optional[OpcodeFamily]:
    """Return the family of an opcode, or None when it is not in the table."""
    return OPCODE_FAMILIES.get(normalize_opcode(opcode))


# ---------------------------------------------------------------------------
# Fallback annotations
# ---------------------------------------------------------------------------

_DESCRIPTIONS: Dict[str, str] = {
    "CopyLoc": "Copy local variable",
    "MoveLoc": "Move local variable (consume)",
    "StLoc": "Store to local variable",
    "ImmBorrowLoc": "Immutable borrow (&)",
    "MutBorrowLoc": "Mutable borrow (&mut)",
    "ImmBorrowField": "Borrow struct field (&)",
    "MutBorrowField": "Borrow struct field (&mut)",
    "Call": "Function call",
    "Pack": "Create struct instance",
    "Unpack": "Destructure struct",
    "Ret": "Return from function",
    "BrTrue": "Branch if true",
    "BrFalse": "Branch if false",
    "Branch": "Unconditional jump",
    "FreezeRef": "Convert &mut to &",
    "LdTrue": "Load true",
    "LdFalse": "Load false",
    "LdConst": "Load constant from pool",
    "Pop": "Discard top of stack",
    "Abort": "Abort execution",
    "ReadRef": "Read through reference",
    "WriteRef": "Write through reference",
    "Not": "Logical negation",
    "VecPack": "Build vector from stack values",
    "VecLen": "Vector length",
    "VecImmBorrow": "Borrow vector element (&)",
    "VecMutBorrow": "Borrow vector element (&mut)",
    "VecPushBack": "Append to vector",
    "VecPopBack": "Remove last vector element",
    "VecSwap": "Swap vector elements",
    "Nop": "No operation",
}

for _width in _INTEGER_WIDTHS:
    _DESCRIPTIONS[f"LdU{_width}"] = f"Load u{_width} constant"
    _DESCRIPTIONS[f"CastU{_width}"] = f"Cast to u{_width}"
for _name, _symbol in BINARY_OPERATORS.items():
    _DESCRIPTIONS[_name] = f"Binary operation ({_symbol})"

OPCODE_DESCRIPTIONS = MappingProxyType(_DESCRIPTIONS)


def describe_opcode(opcode: str) -> Optional[str]:
    """Short explanatory comment for an opcode, or None if unrecognized."""
    return OPCODE_DESCRIPTIONS.get(normalize_opcode(opcode))
