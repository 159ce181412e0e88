"""Per-export compile state, passed explicitly to every builder."""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .constants import DEFAULT_FPS, DEFAULT_HEIGHT, DEFAULT_WIDTH
from .graph import FilterGraph
from .ledger import TransitionLedger


def default_work_dir() -> Path:
    return Path(tempfile.gettempdir()) / "clipgraph"


@dataclass(frozen=True)
class InputSpec:
    """One `-i` entry of the command, with the options placed before it."""

    path: str
    options: tuple[str, ...] = ()

    def to_args(self) -> list[str]:
        return [*self.options, "-i", self.path]


@dataclass
class CompileContext:
    """Everything one compile pass reads and writes.

    Holds the canvas, the graph being built, the transition ledger, the
    registered inputs, the label counters and the generated artifacts.
    A new context is made per export, so nothing leaks between exports.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    fps: int = DEFAULT_FPS
    work_dir: Path = field(default_factory=default_work_dir)
    graph: FilterGraph = field(default_factory=FilterGraph)
    ledger: TransitionLedger = field(default_factory=TransitionLedger)
    inputs: list[InputSpec] = field(default_factory=list)
    artifacts: list[Path] = field(default_factory=list)
    _counters: dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"

    def add_input(self, path, options=()) -> int:
        """Register a command input and return its index."""
        self.inputs.append(InputSpec(str(path), tuple(options)))
        return len(self.inputs) - 1

    def label(self, prefix: str) -> str:
        """Next unused label for a prefix: scaled0, scaled1, ..."""
        n = self._counters.get(prefix, 0)
        self._counters[prefix] = n + 1
        return f"{prefix}{n}"

    def add_artifact(self, path) -> Path:
        path = Path(path)
        if path not in self.artifacts:
            self.artifacts.append(path)
        return path

    def ensure_work_dir(self) -> Path:
        self.work_dir.mkdir(parents=True, exist_ok=True)
        return self.work_dir
