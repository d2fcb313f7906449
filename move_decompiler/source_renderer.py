"""
Pseudo-Source Renderer

Runs the extraction → tokenization → interpretation pipeline over a Move
disassembly listing and renders the result as a pseudo-Move module. When
anything in the pipeline fails unexpectedly, the original listing is
returned annotated with one comment per recognized opcode instead.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .block_extractor import (
    FunctionBlock,
    FunctionVisibility,
    StructBlock,
    TypedName,
    extract_functions,
    extract_module_name,
    extract_structs,
)
from .instruction_tokenizer import tokenize_body
from .opcode_stats import OpcodeStatistics, collect_statistics
from .opcodes import describe_opcode
from .settings import DecompilerSettings
from .stack_interpreter import StackInterpreter
from .type_utils import is_unit_type
from .variable_naming import LocalsTable

logger = logging.getLogger(__name__)

_INSTRUCTION_OPCODE = re.compile(r"^\s*\d+:\s*(\w+)")


@dataclass
class DecompiledFunction:
    """One function after interpretation."""
    block: FunctionBlock
    parameters: List[TypedName] = field(default_factory=list)
    statements: List[str] = field(default_factory=list)
    leftover_stack: List[str] = field(default_factory=list)
    statistics: OpcodeStatistics = field(default_factory=OpcodeStatistics)

    @property
    def name(self) -> str:
        return self.block.name

    @property
    def original_disassembly(self) -> str:
        return "\n".join(self.block.body_lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.block.name,
            "visibility": self.block.visibility.value,
            "type_parameters": self.block.type_parameters,
            "parameters": [{"name": p.name, "type": p.type} for p in self.parameters],
            "return_type": self.block.return_type,
            "statements": self.statements,
            "leftover_stack": self.leftover_stack,
            "statistics": self.statistics.to_dict(),
        }


@dataclass
class DecompiledModule:
    """The terminal artifact of the pipeline."""
    module_name: str = "unknown"
    structs: List[StructBlock] = field(default_factory=list)
    functions: List[DecompiledFunction] = field(default_factory=list)

    @property
    def statistics(self) -> OpcodeStatistics:
        total = OpcodeStatistics()
        for function in self.functions:
            total = total.merge(function.statistics)
        return total

    def to_dict(self) -> Dict[str, Any]:
        """Convert the module to a JSON-serializable dictionary."""
        return {
            "module_name": self.module_name,
            "structs": [
                {
                    "name": s.name,
                    "type_parameters": s.type_parameters,
                    "abilities": s.abilities,
                    "fields": [{"name": f.name, "type": f.type} for f in s.fields],
                }
                for s in self.structs
            ],
            "functions": [f.to_dict() for f in self.functions],
            "statistics": self.statistics.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class DecompilationReport:
    """Rendered output plus how it was produced."""
    source: str
    module: Optional[DecompiledModule] = None
    used_fallback: bool = False
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def decompile_function(
    block: FunctionBlock,
    interpreter: Optional[StackInterpreter] = None,
) -> DecompiledFunction:
    """Tokenize and interpret one function block with a fresh locals table."""
    interpreter = interpreter or StackInterpreter()
    body = tokenize_body(block.body_lines)

    locals_table = LocalsTable()
    names = locals_table.seed_parameters(block.parameters, block.name)
    for declaration in body.declarations:
        locals_table.declare_local(declaration.index, declaration.label, declaration.type)

    result = interpreter.interpret(body.instructions, locals_table, block.return_type)
    if result.leftover_stack:
        logger.debug(f"{block.name}: {len(result.leftover_stack)} values left on the stack")

    return DecompiledFunction(
        block=block,
        parameters=[TypedName(name=name, type=p.type) for name, p in zip(names, block.parameters)],
        statements=result.statements,
        leftover_stack=result.leftover_stack,
        statistics=collect_statistics(body.instructions),
    )


def decompile_module(text: str, settings: Optional[DecompilerSettings] = None) -> DecompiledModule:
    """
    Extract structs and functions from a disassembly and interpret every
    function body.

    Args:
        text: Full disassembly text
        settings: Optional settings (placeholder token)

    Returns:
        DecompiledModule in source order
    """
    settings = settings or DecompilerSettings()
    lines = text.split("\n")
    interpreter = StackInterpreter(placeholder=settings.placeholder)

    module = DecompiledModule(
        module_name=extract_module_name(lines),
        structs=extract_structs(lines),
        functions=[decompile_function(block, interpreter) for block in extract_functions(text)],
    )
    logger.info(
        f"Decompiled module {module.module_name}: "
        f"{len(module.structs)} structs, {len(module.functions)} functions"
    )
    return module


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _render_struct(struct: StructBlock, indent: str) -> List[str]:
    type_params = f"<{', '.join(struct.type_parameters)}>" if struct.type_parameters else ""
    abilities = f" has {', '.join(struct.abilities)}" if struct.abilities else ""
    lines = [f"{indent}struct {struct.name}{type_params}{abilities} {{"]
    for struct_field in struct.fields:
        lines.append(f"{indent * 2}{struct_field.name}: {struct_field.type},")
    lines.append(f"{indent}}}")
    return lines


def _render_function(function: DecompiledFunction, settings: DecompilerSettings) -> List[str]:
    indent = settings.indent
    block = function.block

    keyword = "" if block.visibility == FunctionVisibility.PRIVATE else f"{block.visibility.value} "
    type_params = f"<{', '.join(block.type_parameters)}>" if block.type_parameters else ""
    params = ", ".join(f"{p.name}: {p.type}" for p in function.parameters)
    return_type = "" if is_unit_type(block.return_type) else f": {block.return_type}"

    lines = [f"{indent}{keyword}fun {block.name}{type_params}({params}){return_type} {{"]
    if function.statements:
        lines.extend(f"{indent * 2}{statement}" for statement in function.statements)
    else:
        lines.append(f"{indent * 2}{settings.empty_body_comment}")
    lines.append(f"{indent}}}")
    return lines


def render_module(module: DecompiledModule, settings: Optional[DecompilerSettings] = None) -> str:
    """
    Render a decompiled module as pseudo-Move source.

    Args:
        module: Output of ``decompile_module``
        settings: Indentation and header options

    Returns:
        Pseudo-source text
    """
    settings = settings or DecompilerSettings()
    lines = []
    if settings.include_header:
        lines.append(f"// Decompiled Move module: {module.module_name}")
        lines.append("// Note: Variable names and comments are approximated")
        lines.append("")

    lines.append(f"module {module.module_name} {{")
    lines.append("")

    for struct in module.structs:
        lines.extend(_render_struct(struct, settings.indent))
        lines.append("")

    for function in module.functions:
        lines.extend(_render_function(function, settings))
        lines.append("")

    lines.append("}")
    return "\n".join(lines)


def annotate_disassembly(text: str, indent: str = "        ") -> str:
    """
    Annotate the raw disassembly with a comment after every recognized
    instruction. Used when full decompilation fails.

    Args:
        text: Original disassembly text
        indent: Prefix for the comment lines

    Returns:
        The input lines interleaved with ``// ...`` comments
    """
    annotated = []
    for line in text.split("\n"):
        annotated.append(line)
        match = _INSTRUCTION_OPCODE.match(line)
        if match:
            description = describe_opcode(match.group(1))
            if description:
                annotated.append(f"{indent}// {description}")
    return "\n".join(annotated)


def decompile_with_report(text: str, settings: Optional[DecompilerSettings] = None) -> DecompilationReport:
    """
    Decompile a disassembly, falling back to annotation on any unexpected
    error.

    Args:
        text: Full disassembly text
        settings: Optional settings

    Returns:
        DecompilationReport; ``used_fallback`` tells which mode produced it
    """
    settings = settings or DecompilerSettings()
    try:
        module = decompile_module(text, settings)
        return DecompilationReport(source=render_module(module, settings), module=module)
    except Exception as e:
        logger.error(f"Decompilation failed: {e}")
        logger.warning("Using annotated disassembly fallback")
        return DecompilationReport(
            source=annotate_disassembly(text),
            used_fallback=True,
            error=str(e),
        )


def decompile_to_move(text: str, settings: Optional[DecompilerSettings] = None) -> str:
    """
    Convenience function to decompile a disassembly into pseudo-Move source.

    Args:
        text: Full disassembly text

    Returns:
        Pseudo-source, or the annotated fallback
    """
    return decompile_with_report(text, settings).source
