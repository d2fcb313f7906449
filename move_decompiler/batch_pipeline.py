"""
Batch decompilation of several Move modules.

Each module is an independent pure transform, so modules are decompiled
concurrently, one per worker. A failure in one module never hides the
output of the others.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from .opcode_stats import OpcodeStatistics
from .settings import DecompilerSettings
from .source_renderer import annotate_disassembly, decompile_with_report

logger = logging.getLogger(__name__)


@dataclass
class ModuleResult:
    """Outcome of decompiling one module."""
    name: str
    source: str
    used_fallback: bool = False
    error: Optional[str] = None
    statistics: OpcodeStatistics = field(default_factory=OpcodeStatistics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "used_fallback": self.used_fallback,
            "error": self.error,
            "statistics": self.statistics.to_dict(),
        }


@dataclass
class BatchResult:
    """Results for a batch, in input order."""
    modules: List[ModuleResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(not m.used_fallback for m in self.modules)

    @property
    def fallback_count(self) -> int:
        return sum(1 for m in self.modules if m.used_fallback)

    @property
    def statistics(self) -> OpcodeStatistics:
        total = OpcodeStatistics()
        for module in self.modules:
            total = total.merge(module.statistics)
        return total

    def combined_output(self) -> str:
        """All module sources joined under ``// ===== Module: name =====`` headers."""
        sections = []
        for module in self.modules:
            sections.append(f"// ===== Module: {module.name} =====\n\n{module.source}")
        return "\n\n".join(sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "module_count": len(self.modules),
            "fallback_count": self.fallback_count,
            "modules": [m.to_dict() for m in self.modules],
            "statistics": self.statistics.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class BatchDecompiler:
    """Decompiles a mapping of module name → disassembly text."""

    def __init__(self, settings: Optional[DecompilerSettings] = None):
        self.settings = settings or DecompilerSettings()

    def decompile_one(self, name: str, text: str) -> ModuleResult:
        report = decompile_with_report(text, self.settings)
        return ModuleResult(
            name=name,
            source=report.source,
            used_fallback=report.used_fallback,
            error=report.error,
            statistics=report.module.statistics if report.module else OpcodeStatistics(),
        )

    def decompile_batch(
        self,
        modules: Dict[str, str],
        max_workers: Optional[int] = None,
        show_progress: Optional[bool] = None,
    ) -> BatchResult:
        """
        Decompile every module concurrently.

        Args:
            modules: Module name → disassembly text
            max_workers: Worker count; defaults to ``settings.max_workers``
            show_progress: Show a tqdm progress bar; defaults to
                ``settings.show_progress``

        Returns:
            BatchResult with one ModuleResult per input, in input order
        """
        if not modules:
            return BatchResult()

        max_workers = max_workers or self.settings.max_workers
        if show_progress is None:
            show_progress = self.settings.show_progress

        results: Dict[str, ModuleResult] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_name = {
                executor.submit(self.decompile_one, name, text): name
                for name, text in modules.items()
            }

            for future in tqdm(
                as_completed(future_to_name),
                total=len(future_to_name),
                desc="Decompiling modules",
                disable=not show_progress,
            ):
                name = future_to_name[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.error(f"Failed to decompile module {name}: {e}")
                    results[name] = ModuleResult(
                        name=name,
                        source=annotate_disassembly(modules[name]),
                        used_fallback=True,
                        error=str(e),
                    )

        batch = BatchResult(modules=[results[name] for name in modules])
        logger.info(
            f"Decompiled {len(batch.modules)} modules "
            f"({batch.fallback_count} used the annotated fallback)"
        )
        return batch
