"""
Variable Naming Heuristics: maps Move types to readable local names.

Names are resolved with a tiered strategy:
  1. Context overrides keyed on the enclosing function name
     (``transfer``, ``deposit``/``withdraw``, ``swap``, ``mint``, ``burn``)
  2. A curated table of well-known Sui types (capabilities, containers,
     coin/balance types named after their generic argument, primitives)
  3. A snake_case rendering of the bare type name

``LocalsTable`` applies these names to the slots of one function and keeps
them unique.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Optional

from .type_utils import base_type_name, first_generic_name

logger = logging.getLogger(__name__)

PLACEHOLDER = "?"

# Disassemblers name parameters after their slot: Arg0, Arg1, ...
_SLOT_PARAMETER = re.compile(r"^Arg\d+$")
_ANNOTATION_SLOT = re.compile(r"^(\w+)\s*:\s*(.*)$")


@dataclass(frozen=True)
class NamingContext:
    """Where a variable is declared."""

    function_name: str = ""
    # 0-based ordinal among the function's parameters sharing this base type
    position: Optional[int] = None


# ---------------------------------------------------------------------------
# Built-in type table
# ---------------------------------------------------------------------------

def _generic_or(suffix: str, default: str) -> Callable[[Optional[str]], str]:
    def name(generic: Optional[str]) -> str:
        return f"{to_snake_case(generic)}_{suffix}" if generic else default
    return name


def _prefixed_or(prefix: str, default: str) -> Callable[[Optional[str]], str]:
    def name(generic: Optional[str]) -> str:
        return f"{prefix}_{to_snake_case(generic)}" if generic else default
    return name


def _vector_name(generic: Optional[str]) -> str:
    if generic == "u8":
        return "bytes"
    return f"{to_snake_case(generic)}_list" if generic else "items"


# Mapping: bare type name → fixed name, or a callable taking the bare name of
# the first generic argument.
_TYPE_NAMES = MappingProxyType({
    # ---- Objects & collections ----
    "UID": "uid",
    "ID": "id",
    "Bag": "bag",
    "Table": "table",
    "VecSet": "vec_set",
    "VecMap": "vec_map",
    "ObjectBag": "object_bag",
    "ObjectTable": "object_table",
    "LinkedTable": "linked_table",
    # ---- Tokens ----
    "Coin": _generic_or("coin", "coin"),
    "Balance": _generic_or("balance", "balance"),
    "TreasuryCap": "treasury_cap",
    "CoinMetadata": "coin_metadata",
    "Supply": "supply",
    # ---- Capabilities ----
    "AdminCap": "admin_cap",
    "OwnerCap": "owner_cap",
    "UpgradeCap": "upgrade_cap",
    "Publisher": "publisher",
    # ---- Runtime ----
    "TxContext": "ctx",
    "Clock": "clock",
    # ---- DeFi ----
    "Pool": "pool",
    "Position": "position",
    "Liquidity": "liquidity",
    "Oracle": "oracle",
    "PriceInfo": "price_info",
    # ---- Std ----
    "String": "name",
    "Url": "url",
    "Option": _prefixed_or("maybe", "option"),
    "vector": _vector_name,
    # ---- Primitives ----
    "address": "recipient",
    "u8": "byte_val",
    "u16": "short_val",
    "u32": "int_val",
    "u64": "amount",
    "u128": "value",
    "u256": "big_value",
    "bool": "is_valid",
})


def to_snake_case(type_name: str) -> str:
    """``PriceFeed`` → ``price_feed``; always returns a usable identifier."""
    snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", type_name)
    snake = re.sub(r"(?<=[A-Z])([A-Z][a-z])", r"_\1", snake)
    snake = re.sub(r"\W+", "_", snake).strip("_").lower()
    if not snake:
        return "value"
    if snake[0].isdigit():
        return f"v{snake}"
    return snake


def _context_name(type_name: str, context: NamingContext) -> Optional[str]:
    function_name = context.function_name.lower()

    if "transfer" in function_name and type_name == "address":
        return "recipient"

    if "deposit" in function_name or "withdraw" in function_name:
        if type_name == "u64":
            return "amount"
        if type_name == "Coin":
            return "deposit_coin"

    if "swap" in function_name:
        if type_name == "Coin" and context.position == 0:
            return "coin_in"
        if type_name == "Coin" and context.position == 1:
            return "coin_out"
        if type_name == "u64":
            return "min_amount_out"

    if "mint" in function_name:
        if type_name == "u64":
            return "mint_amount"
        if type_name == "TreasuryCap":
            return "treasury"

    if "burn" in function_name and type_name == "Coin":
        return "burn_coin"

    return None


def infer_variable_name(type_str: str, context: Optional[NamingContext] = None) -> str:
    """
    Derive a display name for a variable of the given type.

    Args:
        type_str: Declared Move type, e.g. ``&mut Coin<SUI>``
        context: Enclosing function and parameter position, if known

    Returns:
        A lowercase identifier; never empty
    """
    type_name = base_type_name(type_str)

    if context is not None and context.function_name:
        contextual = _context_name(type_name, context)
        if contextual:
            return contextual

    known = _TYPE_NAMES.get(type_name)
    if callable(known):
        return known(first_generic_name(type_str))
    if known:
        return known

    return to_snake_case(type_name)


# ---------------------------------------------------------------------------
# Per-function slot table
# ---------------------------------------------------------------------------

class LocalsTable:
    """
    Display names for the stack slots of one function.

    Slots are keyed by ``ArgN`` (parameters), ``LN`` (declared locals) and
    the disassembler's own local labels (``loc0``). Entries are only ever
    added.
    """

    def __init__(self):
        self._slots: Dict[str, str] = {}
        self._taken: Dict[str, int] = {}
        self._parameters: List[str] = []

    def __contains__(self, slot: str) -> bool:
        return slot in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def parameter_names(self) -> List[str]:
        return list(self._parameters)

    def get(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def unique_name(self, base: str) -> str:
        """Reserve ``base``, or ``base_1``, ``base_2``... if already taken."""
        count = self._taken.get(base, 0)
        candidate = base if count == 0 else f"{base}_{count}"
        while candidate in self._taken:
            count += 1
            candidate = f"{base}_{count}"
        self._taken[base] = count + 1
        self._taken.setdefault(candidate, 1)
        return candidate

    def seed_parameters(self, parameters: List, function_name: str = "") -> List[str]:
        """
        Register the parameters of a function as ``Arg0..ArgN``.

        Parameters keep their declared names unless they are slot names
        (``Arg0``), in which case a name is inferred from the type.

        Args:
            parameters: Items with ``name`` and ``type`` attributes
            function_name: Used for context-aware naming

        Returns:
            Display names in parameter order
        """
        names = []
        ordinals: Dict[str, int] = {}
        for index, parameter in enumerate(parameters):
            type_name = base_type_name(parameter.type)
            position = ordinals.get(type_name, 0)
            ordinals[type_name] = position + 1

            if _SLOT_PARAMETER.match(parameter.name):
                context = NamingContext(function_name=function_name, position=position)
                display = self.unique_name(infer_variable_name(parameter.type, context))
            else:
                display = parameter.name
                self._taken[display] = max(self._taken.get(display, 0), 1)

            self._slots[f"Arg{index}"] = display
            names.append(display)
        self._parameters.extend(names)
        return names

    def declare_local(self, index: int, label: str, type_str: str) -> str:
        """Register a declared local; the same slot is never renamed."""
        slot = f"L{index}"
        if slot in self._slots:
            return self._slots[slot]
        display = self.unique_name(infer_variable_name(type_str))
        self._slots[slot] = display
        if label and label not in self._slots:
            self._slots[label] = display
        return display

    def resolve(self, operand: Optional[str], annotation: Optional[str]) -> str:
        """
        Display name for a slot referenced by an instruction.

        The annotation (``Arg0: &mut Coin<T>``) takes precedence over the
        numeric operand. Slots seen for the first time are registered.
        """
        key = None
        type_str = ""
        if annotation:
            match = _ANNOTATION_SLOT.match(annotation)
            if match:
                key, type_str = match.group(1), match.group(2).strip()
                if key in self._slots:
                    return self._slots[key]

        if operand:
            operand = operand.strip()
            if operand.isdigit():
                for slot in (f"L{operand}", f"Arg{operand}"):
                    if slot in self._slots:
                        return self._slots[slot]
            elif operand in self._slots:
                return self._slots[operand]

        if key is None and not operand:
            return PLACEHOLDER

        if type_str:
            display = self.unique_name(infer_variable_name(type_str))
        else:
            display = self.unique_name(to_snake_case(key or operand))

        if key:
            self._slots[key] = display
        else:
            self._slots[f"L{operand}" if operand.isdigit() else operand] = display
        logger.debug(f"Lazily named slot {key or operand} as {display}")
        return display
