"""
Move Disassembly Decompiler

Turns the textual disassembly of a Sui Move module into readable
pseudo-Move source: structs and function signatures are carved out of the
listing, each function body is replayed through a stack-machine simulator,
and stack slots get names inferred from their types.

When decompilation fails the disassembly is returned annotated with one
comment per recognized opcode.
"""

from .batch_pipeline import BatchDecompiler, BatchResult, ModuleResult
from .settings import DecompilerSettings, SettingsError, load_settings
from .source_renderer import (
    DecompilationReport,
    DecompiledModule,
    annotate_disassembly,
    decompile_module,
    decompile_to_move,
    decompile_with_report,
    render_module,
)

__version__ = "1.0.0"
__author__ = "Move Decompilation Team"

__all__ = [
    "BatchDecompiler",
    "BatchResult",
    "DecompilationReport",
    "DecompiledModule",
    "DecompilerSettings",
    "ModuleResult",
    "SettingsError",
    "annotate_disassembly",
    "decompile_module",
    "decompile_to_move",
    "decompile_with_report",
    "load_settings",
    "render_module",
]
