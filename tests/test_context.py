"""Tests for the per-export compile context."""

from pathlib import Path

from clipgraph.context import CompileContext, InputSpec


class TestLabels:
    def test_counts_per_prefix(self):
        ctx = CompileContext()
        assert ctx.label("scaled") == "scaled0"
        assert ctx.label("scaled") == "scaled1"
        assert ctx.label("vtrans") == "vtrans0"

    def test_fresh_context_restarts(self):
        CompileContext().label("scaled")
        assert CompileContext().label("scaled") == "scaled0"


class TestInputs:
    def test_indexes(self):
        ctx = CompileContext()
        assert ctx.add_input("a.mp4") == 0
        assert ctx.add_input("b.png", ["-loop", "1"]) == 1
        assert ctx.inputs[1] == InputSpec("b.png", ("-loop", "1"))

    def test_to_args(self):
        spec = InputSpec("b.png", ("-loop", "1", "-t", "3"))
        assert spec.to_args() == ["-loop", "1", "-t", "3", "-i", "b.png"]


class TestArtifacts:
    def test_deduplicated(self, tmp_path):
        ctx = CompileContext(work_dir=tmp_path)
        ctx.add_artifact(tmp_path / "a.txt")
        ctx.add_artifact(tmp_path / "a.txt")
        assert ctx.artifacts == [tmp_path / "a.txt"]

    def test_work_dir_is_path(self, tmp_path):
        ctx = CompileContext(work_dir=str(tmp_path / "w"))
        assert isinstance(ctx.work_dir, Path)
        ctx.ensure_work_dir()
        assert (tmp_path / "w").is_dir()

    def test_size(self):
        assert CompileContext(width=640, height=360).size == "640x360"
