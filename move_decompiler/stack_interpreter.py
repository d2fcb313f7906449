"""
Move Stack Machine Interpreter

Simulates the Move operand stack over the instruction records of one
function body and emits readable pseudo-source statements. The pass is a
single left-to-right walk: branches become comments, loops and conditionals
are not reconstructed.

Every opcode in the opcode table belongs to one ``OpcodeFamily`` and every
family has one handler. Unknown opcodes are skipped; operands that cannot be
resolved render as a placeholder so the surrounding statement still emits.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .instruction_tokenizer import InstructionRecord
from .opcodes import BINARY_OPERATORS, OpcodeFamily, classify_opcode, normalize_opcode
from .type_utils import base_type_name, is_unit_type, split_top_level, tuple_arity
from .variable_naming import PLACEHOLDER, LocalsTable

logger = logging.getLogger(__name__)

_BORROW_PREFIX = re.compile(r"^&(?:mut )?")
_FIELD_NAME = re.compile(r"\.(\w+)")


@dataclass
class CallTarget:
    """A parsed ``module::function<T>(ArgTypes): ReturnType`` annotation."""
    module: Optional[str]
    function: str
    argument_types: List[str] = field(default_factory=list)
    return_type: str = ""

    @property
    def argument_count(self) -> int:
        return len(self.argument_types)

    @property
    def returns_value(self) -> bool:
        return not is_unit_type(self.return_type)

    def qualified_name(self) -> str:
        if self.module:
            return f"{self.module}::{self.function}"
        return self.function


@dataclass
class InterpretationResult:
    """Output of interpreting one function body."""
    statements: List[str] = field(default_factory=list)
    # Fragments still on the stack at the end; non-empty means the
    # reconstruction is incomplete, not that it failed.
    leftover_stack: List[str] = field(default_factory=list)
    skipped_instructions: int = 0


@dataclass
class _Frame:
    """Interpreter state for one function; never shared between functions."""
    locals: LocalsTable
    placeholder: str
    return_type: Optional[str] = None
    stack: List[str] = field(default_factory=list)
    statements: List[str] = field(default_factory=list)
    declared: Set[str] = field(default_factory=set)
    skipped: int = 0

    def push(self, fragment: str) -> None:
        self.stack.append(fragment)

    def pop(self) -> str:
        if self.stack:
            return self.stack.pop()
        return self.placeholder

    def pop_many(self, count: int) -> List[str]:
        """Pop ``count`` fragments and return them in push order."""
        values = [self.pop() for _ in range(count)]
        values.reverse()
        return values

    def emit(self, statement: str) -> None:
        self.statements.append(statement)


def parse_call_annotation(annotation: Optional[str]) -> Optional[CallTarget]:
    """
    Parse a call annotation such as
    ``transfer::public_transfer<SUI>(Coin<SUI>,address):()``.

    Returns:
        CallTarget, or None when the annotation has no argument list
    """
    if not annotation:
        return None

    depth = 0
    open_index = -1
    for index, char in enumerate(annotation):
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        elif char == "(" and depth == 0:
            open_index = index
            break
    if open_index <= 0:
        return None

    depth = 0
    close_index = -1
    for index in range(open_index, len(annotation)):
        char = annotation[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                close_index = index
                break
    if close_index == -1:
        return None

    name = annotation[:open_index].strip()
    generic_start = name.find("<")
    if generic_start != -1:
        name = name[:generic_start]
    path = [part for part in name.split("::") if part]
    if not path:
        return None

    remainder = annotation[close_index + 1:].strip()
    return_type = remainder[1:].strip() if remainder.startswith(":") else ""

    return CallTarget(
        module=path[-2] if len(path) >= 2 else None,
        function=path[-1],
        argument_types=split_top_level(annotation[open_index + 1:close_index]),
        return_type=return_type,
    )


def _receiver(fragment: str) -> str:
    """Drop a leading borrow so ``&mut v`` reads as a method receiver ``v``."""
    return _BORROW_PREFIX.sub("", fragment)


def _literal(record: InstructionRecord) -> Optional[str]:
    if record.operand:
        return record.operand
    if record.annotation:
        return record.annotation
    return None


class StackInterpreter:
    """
    Converts the instruction records of one function into statements.

    The interpreter itself holds no per-function state: each call to
    ``interpret`` works on a fresh frame.
    """

    def __init__(self, placeholder: str = PLACEHOLDER):
        self.placeholder = placeholder
        self._handlers: Dict[OpcodeFamily, Callable[[_Frame, InstructionRecord, str], None]] = {
            OpcodeFamily.LOCAL_LOAD: self._handle_local_load,
            OpcodeFamily.LOCAL_BORROW: self._handle_local_borrow,
            OpcodeFamily.LOCAL_STORE: self._handle_local_store,
            OpcodeFamily.CALL: self._handle_call,
            OpcodeFamily.PACK: self._handle_pack,
            OpcodeFamily.UNPACK: self._handle_unpack,
            OpcodeFamily.RETURN: self._handle_return,
            OpcodeFamily.FREEZE_REF: self._handle_freeze_ref,
            OpcodeFamily.LOAD_INTEGER: self._handle_load_integer,
            OpcodeFamily.LOAD_BOOL: self._handle_load_bool,
            OpcodeFamily.LOAD_CONST: self._handle_load_const,
            OpcodeFamily.POP: self._handle_pop,
            OpcodeFamily.BRANCH: self._handle_branch,
            OpcodeFamily.ABORT: self._handle_abort,
            OpcodeFamily.FIELD_BORROW: self._handle_field_borrow,
            OpcodeFamily.READ_REF: self._handle_read_ref,
            OpcodeFamily.WRITE_REF: self._handle_write_ref,
            OpcodeFamily.BINARY_OP: self._handle_binary_op,
            OpcodeFamily.NOT: self._handle_not,
            OpcodeFamily.CAST: self._handle_cast,
            OpcodeFamily.VEC_PACK: self._handle_vec_pack,
            OpcodeFamily.VEC_LEN: self._handle_vec_len,
            OpcodeFamily.VEC_BORROW: self._handle_vec_borrow,
            OpcodeFamily.VEC_PUSH_BACK: self._handle_vec_push_back,
            OpcodeFamily.VEC_POP_BACK: self._handle_vec_pop_back,
            OpcodeFamily.VEC_SWAP: self._handle_vec_swap,
            OpcodeFamily.NOP: self._handle_nop,
        }

    @property
    def handled_families(self) -> Set[OpcodeFamily]:
        return set(self._handlers)

    def interpret(
        self,
        instructions: List[InstructionRecord],
        locals_table: Optional[LocalsTable] = None,
        return_type: Optional[str] = None,
    ) -> InterpretationResult:
        """
        Run one function body through the stack machine.

        Args:
            instructions: Records in source order
            locals_table: Slot names seeded from the function's parameters
                and declarations; a fresh table is used when omitted
            return_type: Declared return type, if known ("" means unit)

        Returns:
            InterpretationResult with the emitted statements
        """
        frame = _Frame(
            locals=locals_table if locals_table is not None else LocalsTable(),
            placeholder=self.placeholder,
            return_type=return_type,
        )
        frame.declared.update(frame.locals.parameter_names)

        for record in instructions:
            opcode = normalize_opcode(record.opcode)
            family = classify_opcode(opcode)
            if family is None:
                frame.skipped += 1
                logger.debug(f"Skipping unknown opcode {record.opcode} at offset {record.offset}")
                continue
            self._handlers[family](frame, record, opcode)

        return InterpretationResult(
            statements=frame.statements,
            leftover_stack=list(frame.stack),
            skipped_instructions=frame.skipped,
        )

    # ------------------------------------------------------------------
    # Locals
    # ------------------------------------------------------------------

    def _handle_local_load(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(self._local_name(frame, record))

    def _handle_local_borrow(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        prefix = "&mut " if opcode == "MutBorrowLoc" else "&"
        frame.push(f"{prefix}{self._local_name(frame, record)}")

    def _handle_local_store(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        value = frame.pop()
        name = self._local_name(frame, record)
        if name in frame.declared:
            frame.emit(f"{name} = {value};")
        else:
            frame.declared.add(name)
            frame.emit(f"let {name} = {value};")

    def _local_name(self, frame: _Frame, record: InstructionRecord) -> str:
        name = frame.locals.resolve(record.operand, record.annotation)
        return self.placeholder if name == PLACEHOLDER else name

    # ------------------------------------------------------------------
    # Calls and structs
    # ------------------------------------------------------------------

    def _handle_call(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        target = parse_call_annotation(record.annotation)
        if target is None:
            frame.skipped += 1
            logger.debug(f"Unparseable call annotation at offset {record.offset}: {record.annotation}")
            return

        arguments = frame.pop_many(target.argument_count)
        expression = f"{target.qualified_name()}({', '.join(arguments)})"
        if target.returns_value:
            frame.push(expression)
        else:
            frame.emit(f"{expression};")

    def _struct_name(self, record: InstructionRecord) -> str:
        if record.annotation:
            name = base_type_name(record.annotation)
            if re.match(r"^\w+$", name):
                return name
        return self.placeholder

    def _handle_pack(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        # Field values are not threaded into the literal.
        frame.push(f"{self._struct_name(record)} {{ ... }}")

    def _handle_unpack(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        value = frame.pop()
        frame.emit(f"let {self._struct_name(record)} {{ ... }} = {value};")

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def _handle_return(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        if frame.return_type is not None:
            arity = tuple_arity(frame.return_type)
            if arity == 0:
                frame.emit("return;")
                return
            if arity > 1 and len(frame.stack) >= arity:
                frame.emit(f"return ({', '.join(frame.pop_many(arity))});")
                return

        if frame.stack:
            frame.emit(f"return {frame.pop()};")
        else:
            frame.emit("return;")

    def _handle_branch(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        target = _literal(record) or self.placeholder
        if opcode == "Branch":
            frame.emit(f"// goto {target}")
            return
        condition = frame.pop()
        if opcode == "BrTrue":
            frame.emit(f"// if ({condition}) goto {target}")
        else:
            frame.emit(f"// if (!{condition}) goto {target}")

    def _handle_abort(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.emit(f"abort {frame.pop()};")

    def _handle_pop(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        if not frame.stack:
            return
        value = frame.stack.pop()
        if not value.startswith(self.placeholder):
            frame.emit(f"_ = {value};")

    def _handle_nop(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        pass

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------

    def _handle_load_integer(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(_literal(record) or "0")

    def _handle_load_bool(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push("true" if opcode == "LdTrue" else "false")

    def _handle_load_const(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        annotation = record.annotation
        if annotation:
            # "u64: 100", "vector<u8>: "abc" // interpreted as UTF8 string"
            value = annotation.split(": ", 1)[1] if ": " in annotation else annotation
            value = value.split(" //", 1)[0].strip()
            frame.push(value or annotation)
        elif record.operand:
            frame.push(f"CONST_{record.operand}")
        else:
            frame.push(self.placeholder)

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _handle_freeze_ref(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        value = frame.pop()
        if value.startswith("&mut "):
            value = "&" + value[len("&mut "):]
        frame.push(value)

    def _handle_field_borrow(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        obj = _receiver(frame.pop())
        match = _FIELD_NAME.search(record.annotation or "")
        field_name = match.group(1) if match else self.placeholder
        prefix = "&mut " if opcode == "MutBorrowField" else "&"
        frame.push(f"{prefix}{obj}.{field_name}")

    def _handle_read_ref(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(f"*{frame.pop()}")

    def _handle_write_ref(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        value = frame.pop()
        reference = frame.pop()
        frame.emit(f"*{reference} = {value};")

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _handle_binary_op(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        right = frame.pop()
        left = frame.pop()
        frame.push(f"({left} {BINARY_OPERATORS[opcode]} {right})")

    def _handle_not(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(f"!{frame.pop()}")

    def _handle_cast(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        target_type = opcode[len("Cast"):].lower()
        frame.push(f"({frame.pop()} as {target_type})")

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------

    def _vector_length(self, record: InstructionRecord) -> int:
        if record.annotation:
            parts = split_top_level(record.annotation)
            if parts and parts[-1].isdigit():
                return int(parts[-1])
        if record.operand and record.operand.isdigit():
            return int(record.operand)
        return 0

    def _handle_vec_pack(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        elements = frame.pop_many(self._vector_length(record))
        frame.push(f"vector[{', '.join(elements)}]")

    def _handle_vec_len(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(f"{_receiver(frame.pop())}.length()")

    def _handle_vec_borrow(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        index = frame.pop()
        vector = _receiver(frame.pop())
        prefix = "&mut " if opcode == "VecMutBorrow" else "&"
        frame.push(f"{prefix}{vector}[{index}]")

    def _handle_vec_push_back(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        value = frame.pop()
        vector = _receiver(frame.pop())
        frame.emit(f"{vector}.push_back({value});")

    def _handle_vec_pop_back(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        frame.push(f"{_receiver(frame.pop())}.pop_back()")

    def _handle_vec_swap(self, frame: _Frame, record: InstructionRecord, opcode: str) -> None:
        second, first = frame.pop(), frame.pop()
        vector = _receiver(frame.pop())
        frame.emit(f"{vector}.swap({first}, {second});")


def interpret_function(
    instructions: List[InstructionRecord],
    locals_table: Optional[LocalsTable] = None,
    return_type: Optional[str] = None,
) -> List[str]:
    """
    Convenience function returning only the statement list.

    Args:
        instructions: Records of one function body
        locals_table: Seeded slot names, optional
        return_type: Declared return type, optional

    Returns:
        Emitted statements in order
    """
    return StackInterpreter().interpret(instructions, locals_table, return_type).statements
