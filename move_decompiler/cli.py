#!/usr/bin/env python3
"""
Command-line interface for the Move disassembly decompiler.

Usage:
    move-decompile coin.mvb pool.mvb
    move-decompile coin.mvb --format file --output decompiled/
    move-decompile coin.mvb --format json --stats
    move-decompile coin.mvb --annotate-only
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .batch_pipeline import BatchDecompiler, BatchResult
from .settings import SettingsError, load_settings
from .source_renderer import annotate_disassembly

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("console", "file", "json")


def setup_logging(level: str = "INFO"):
    """Configure console logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def read_modules(paths: List[str]) -> Dict[str, str]:
    """
    Read disassembly files keyed by file stem.

    Raises:
        FileNotFoundError: If any input file is missing
    """
    modules = {}
    for path_str in paths:
        path = Path(path_str)
        if not path.is_file():
            raise FileNotFoundError(f"Disassembly file not found: {path}")
        name = path.stem
        if name in modules:
            logger.warning(f"Duplicate module name {name}; using {path}")
        modules[name] = path.read_text(encoding="utf-8")
    return modules


def _write_files(result: BatchResult, output_dir: Path) -> List[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for module in result.modules:
        target = output_dir / f"{module.name}.move"
        target.write_text(module.source + "\n", encoding="utf-8")
        written.append(target)
        logger.info(f"Wrote {target}")
    return written


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        print(text)


def _format_stats(result: BatchResult) -> str:
    lines = ["", "// ===== Opcode statistics ====="]
    for module in result.modules:
        stats = module.statistics
        lines.append(
            f"// {module.name}: {stats.recognized}/{stats.total} instructions recognized "
            f"({stats.coverage:.1%})"
        )
        if stats.unknown:
            unknown = ", ".join(f"{op} x{count}" for op, count in sorted(stats.unknown.items()))
            lines.append(f"//   unknown: {unknown}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="move-decompile",
        description="Decompile Move disassembly listings into readable pseudo-source",
    )
    parser.add_argument("files", nargs="+", help="Disassembly text files")
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="console",
        help="console: print combined output; file: one .move file per module; json: structured result",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file (console/json) or directory (file, default: decompiled)",
    )
    parser.add_argument("--settings", type=str, default=None, help="Settings YAML file")
    parser.add_argument("--workers", type=int, default=None, help="Number of parallel workers")
    parser.add_argument("--stats", action="store_true", help="Include opcode statistics")
    parser.add_argument(
        "--annotate-only",
        action="store_true",
        help="Only annotate the disassembly with opcode comments",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.settings)
    except SettingsError as e:
        setup_logging()
        logger.error(f"Invalid settings: {e}")
        return 1

    setup_logging("DEBUG" if args.verbose else settings.log_level)

    if args.workers is not None and args.workers < 1:
        logger.error("--workers must be at least 1")
        return 1

    try:
        modules = read_modules(args.files)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    if args.annotate_only:
        sections = [
            f"// ===== Module: {name} =====\n\n{annotate_disassembly(text)}"
            for name, text in modules.items()
        ]
        _emit("\n\n".join(sections), args.output)
        return 0

    result = BatchDecompiler(settings).decompile_batch(modules, max_workers=args.workers)

    if args.format == "json":
        payload = result.to_dict()
        if not args.stats:
            payload.pop("statistics")
            for module in payload["modules"]:
                module.pop("statistics")
        _emit(json.dumps(payload, indent=2), args.output)
    elif args.format == "file":
        _write_files(result, Path(args.output or "decompiled"))
        if args.stats:
            print(_format_stats(result))
    else:
        text = result.combined_output()
        if args.stats:
            text += "\n" + _format_stats(result)
        _emit(text, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
