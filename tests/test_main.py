"""Tests for the subcommand dispatcher and the render / probe CLIs."""

import tempfile

import pytest
import yaml


def _write_manifest(content: dict) -> str:
    """Write a manifest dict to a temp YAML file, return path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


def _color_manifest():
    return {
        "video": {"resolution": [320, 240], "fps": 10},
        "clips": [
            {"type": "color", "color": "navy", "duration": 2},
            {"type": "color", "color": "red", "duration": 2,
             "transition": {"type": "fade", "duration": 0.5}},
        ],
    }


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from clipgraph.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0
        assert "render" in capsys.readouterr().out

    def test_render_subcommand_exists(self):
        """Render is registered; it fails on the missing --manifest."""
        from clipgraph.main import main

        with pytest.raises(SystemExit):
            main(["render"])

    def test_probe_subcommand_exists(self):
        from clipgraph.main import main

        with pytest.raises(SystemExit):
            main(["probe"])

    def test_invalid_subcommand_errors(self):
        from clipgraph.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestRenderCli:
    def test_validate(self, capsys):
        from clipgraph.render_cli import main

        main(["--manifest", _write_manifest(_color_manifest()), "--validate"])
        out = capsys.readouterr().out
        assert "Manifest valid: 2 clips, 320x240 @ 10fps" in out
        assert "All paths verified." in out

    def test_validate_with_preset_override(self, capsys):
        from clipgraph.render_cli import main

        main([
            "--manifest", _write_manifest(_color_manifest()),
            "--validate", "--preset", "tiktok",
        ])
        assert "1080x1920 @ 30fps (preset tiktok)" in capsys.readouterr().out

    def test_dry_run_prints_command(self, capsys, tmp_path):
        from clipgraph.render_cli import main

        output = tmp_path / "out.mp4"
        main([
            "--manifest", _write_manifest(_color_manifest()),
            "--output", str(output), "--dry-run",
        ])
        out = capsys.readouterr().out
        assert "-filter_complex" in out
        assert "xfade=transition=fade" in out
        assert "Duration: 3.50s" in out
        assert not output.exists()

    def test_output_required(self):
        from clipgraph.render_cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", _write_manifest(_color_manifest())])
        assert exc_info.value.code == 2

    def test_missing_media_reported(self, capsys, tmp_path):
        from clipgraph.render_cli import main

        m = _color_manifest()
        m["clips"].append({"type": "video", "url": str(tmp_path / "gone.mp4"), "duration": 1})
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", _write_manifest(m), "--validate"])
        assert exc_info.value.code == 1
        assert "gone.mp4" in capsys.readouterr().err

    def test_invalid_clip_reported(self, capsys):
        from clipgraph.render_cli import main

        m = _color_manifest()
        m["clips"][0]["color"] = "blurple"
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", _write_manifest(m), "--validate"])
        assert exc_info.value.code == 1
        assert "Clip 0 (color)" in capsys.readouterr().err

    def test_renders_file(self, tmp_path):
        from clipgraph.render_cli import main

        m = _color_manifest()
        m["export"] = {"preset": "ultrafast"}
        output = tmp_path / "out.mp4"
        main(["--manifest", _write_manifest(m), "--output", str(output)])
        assert output.exists()
        assert output.stat().st_size > 0


class TestProbeCli:
    def test_prints_summary(self, capsys, source_video):
        from clipgraph.probe_cli import main

        main([str(source_video)])
        out = capsys.readouterr().out
        assert "320x240" in out
        assert "audio 44100Hz" in out

    def test_json(self, capsys, source_video):
        import json

        from clipgraph.probe_cli import main

        main([str(source_video), "--json"])
        info = json.loads(capsys.readouterr().out)
        assert info["width"] == 320
        assert info["has_audio"] is True

    def test_missing_file_exits(self, capsys, tmp_path):
        from clipgraph.probe_cli import main

        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.mp4")])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err
