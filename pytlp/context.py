from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from pytlp.config.store import ParameterStore
from pytlp.globals import ROOT
from pytlp.trace import Tracer
from pytlp.types import PowerStates


@dataclass
class RunContext:
    """State of one run shared by all policy applicators."""

    store: ParameterStore
    tracer: Tracer = field(default_factory=Tracer)
    root: Path = field(default_factory=lambda: Path(ROOT))

    def path(self, relpath: str) -> Path:
        return self.root / relpath

    def nodes(self, pattern: str) -> Iterator[Path]:
        """Enumerate device nodes matching a glob relative to the root, in sorted order."""
        return iter(sorted(p for p in self.root.glob(pattern) if p.is_file()))

    def param(self, name: str) -> str:
        return self.store.lookup(name) or ""

    def mode_param(self, name: str, mode: PowerStates) -> str:
        """Value of NAME_ON_AC or NAME_ON_BAT, empty if unset."""
        return self.param(f"{name}_ON_{mode.value}")

    def debug(self, msg: str, *args) -> None:
        self.tracer.debug("pm", msg, *args)
