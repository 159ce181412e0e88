"""Tests for drawtext windows and text overlay stages."""

import logging

from clipgraph.clips import TextClip
from clipgraph.context import CompileContext
from clipgraph.ledger import TransitionLedger
from clipgraph.text import (
    TEXT_OUTPUT_LABEL,
    TextWindow,
    batch_windows,
    build_text_overlays,
    build_text_pass_graph,
    drawtext_params,
    expand_text_windows,
    indexed_word_windows,
    text_source,
    to_visual_windows,
    word_windows,
)


def _text(**kwargs):
    kwargs.setdefault("position", 0)
    kwargs.setdefault("end", 3)
    kwargs.setdefault("text", "a b c")
    return TextClip(**kwargs)


def _ctx(tmp_path=None):
    kwargs = {"width": 640, "height": 360, "fps": 30}
    if tmp_path is not None:
        kwargs["work_dir"] = tmp_path
    return CompileContext(**kwargs)


class TestWordWindows:
    def test_even_split(self):
        clip = _text(mode="word-replace")
        assert word_windows(clip, ["a", "b", "c"]) == [
            (0, 1, "a"), (1, 2, "b"), (2, 3, "c"),
        ]

    def test_last_word_ends_at_clip_end(self):
        clip = _text(position=0, end=1, mode="word-replace")
        windows = word_windows(clip, ["a", "b", "c"])
        assert windows[-1][1] == 1

    def test_boundary_timestamps(self):
        clip = _text(mode="word-replace", word_timestamps=[0, 0.5, 1.5, 3])
        assert word_windows(clip, ["a", "b", "c"]) == [
            (0, 0.5, "a"), (0.5, 1.5, "b"), (1.5, 3, "c"),
        ]

    def test_start_timestamps(self):
        clip = _text(mode="word-replace", word_timestamps=[0, 0.5, 2])
        assert word_windows(clip, ["a", "b", "c"]) == [
            (0, 0.5, "a"), (0.5, 2, "b"), (2, 3, "c"),
        ]

    def test_mismatched_timestamps_fall_back(self, caplog):
        clip = _text(mode="word-replace", word_timestamps=[0, 1])
        with caplog.at_level(logging.WARNING):
            windows = word_windows(clip, ["a", "b", "c"])
        assert len(windows) == 3
        assert "2 timestamps for 3 words" in caplog.text

    def test_explicit_words_clamped(self):
        clip = _text(
            position=1, end=3, mode="word-replace",
            words=[{"text": "a", "start": 0, "end": 2}, {"text": "b", "start": 2, "end": 5}],
        )
        assert word_windows(clip, ["a", "b"]) == [(1, 2, "a"), (2, 3, "b")]

    def test_indexes_point_at_kept_words(self):
        clip = _text(
            position=1, end=3, mode="word-replace",
            words=[{"text": "x", "start": 0, "end": 1}, {"text": "y", "start": 1, "end": 3}],
        )
        assert indexed_word_windows(clip, []) == [(1, 1, 3, "y")]


class TestExpandTextWindows:
    def test_static(self):
        windows = expand_text_windows([_text(text="Hello")])
        assert [(w.text, w.start, w.end) for w in windows] == [("Hello", 0, 3)]

    def test_word_replace(self):
        windows = expand_text_windows([_text(mode="word-replace")])
        assert [w.text for w in windows] == ["a", "b", "c"]

    def test_word_sequential_accumulates(self):
        windows = expand_text_windows([_text(mode="word-sequential")])
        assert [w.text for w in windows] == ["a", "a b", "a b c"]

    def test_word_sequential_skips_words_outside_clip(self):
        clip = _text(
            position=1, end=3, mode="word-sequential",
            words=[
                {"text": "early", "start": 0, "end": 0.5},
                {"text": "one", "start": 1, "end": 2},
                {"text": "two", "start": 2, "end": 3},
            ],
        )
        windows = expand_text_windows([clip])
        assert [(w.text, w.start, w.end) for w in windows] == [
            ("one", 1, 2), ("one two", 2, 3),
        ]

    def test_typewriter_prefixes(self):
        clip = _text(end=1, text="abc", animation={"type": "typewriter", "speed": 0.1})
        windows = expand_text_windows([clip])
        assert [w.text for w in windows] == ["a", "ab", "abc"]
        assert windows[0].start == 0
        assert windows[-1].end == 1
        assert all(w.inline for w in windows)

    def test_typewriter_stops_at_clip_end(self):
        clip = _text(end=0.25, text="abcdef", animation={"type": "typewriter", "speed": 0.1})
        windows = expand_text_windows([clip])
        assert [w.text for w in windows] == ["a", "ab", "abc"]
        assert windows[-1].end == 0.25

    def test_karaoke_skipped(self):
        assert expand_text_windows([_text(mode="karaoke")]) == []


class TestToVisualWindows:
    def _ledger(self):
        ledger = TransitionLedger()
        ledger.record(0)
        ledger.record(5, 0.5)
        return ledger

    def test_shifted_after_transition(self):
        clip = _text(position=6, end=7)
        [w] = to_visual_windows(expand_text_windows([clip]), self._ledger(), 9.5)
        assert (w.start, w.end) == (5.5, 6.5)

    def test_clipped_to_picture(self):
        clip = _text(position=8, end=12)
        [w] = to_visual_windows(expand_text_windows([clip]), self._ledger(), 9.5)
        assert w.end == 9.5

    def test_outside_dropped(self, caplog):
        clip = _text(position=11, end=12)
        with caplog.at_level(logging.WARNING):
            windows = to_visual_windows(expand_text_windows([clip]), self._ledger(), 9.5)
        assert windows == []
        assert "dropped" in caplog.text


class TestDrawtextParams:
    def test_defaults(self):
        clip = _text(position=0, end=2, text="Hello")
        params = drawtext_params(_ctx(), TextWindow(clip, "Hello", 0, 2))
        assert params == (
            "drawtext=text='Hello':font=Sans:fontsize=48:fontcolor=#FFFFFF"
            ":x=(640 - text_w)/2:y=(360 - text_h)/2:enable='between(t,0,2)'"
        )

    def test_percent_position_and_offset(self):
        clip = _text(text="Hi", x_percent=0.5, y_percent=0.9, y_offset=-10)
        params = drawtext_params(_ctx(), TextWindow(clip, "Hi", 0, 3))
        assert ":x=320-text_w/2" in params
        assert ":y=324-text_h/2-10" in params

    def test_font_file(self):
        clip = _text(text="Hi", font_file="/fonts/Inter.ttf")
        params = drawtext_params(_ctx(), TextWindow(clip, "Hi", 0, 3))
        assert ":fontfile='/fonts/Inter.ttf'" in params
        assert ":font=" not in params

    def test_fade_in_alpha(self):
        clip = _text(text="Hi", animation="fade-in")
        params = drawtext_params(_ctx(), TextWindow(clip, "Hi", 1, 3))
        assert ":alpha=if(lt(t\\,1)\\,0\\,if(lt(t\\,1.25)\\,(t-1)/0.25\\,1))" in params

    def test_pulse_fontsize(self):
        clip = _text(text="Hi", animation={"type": "pulse", "speed": 2, "intensity": 0.5})
        params = drawtext_params(_ctx(), TextWindow(clip, "Hi", 0, 3))
        assert ":fontsize=48+24.000*sin(2*PI*2*(t-0))" in params

    def test_box_style(self):
        clip = _text(text="Hi", background_color="black", background_opacity=0.5, padding=10)
        params = drawtext_params(_ctx(), TextWindow(clip, "Hi", 0, 3))
        assert ":box=1:boxcolor=black@0.5:boxborderw=10" in params


class TestTextSource:
    def test_inline(self):
        assert text_source(_ctx(), "Hello") == "text='Hello'"

    def test_problematic_goes_to_file(self, tmp_path):
        ctx = _ctx(tmp_path)
        source = text_source(ctx, "Hello, world")
        assert source.startswith("textfile='")
        assert source.endswith("':expansion=none")
        [path] = ctx.artifacts
        assert path.read_text(encoding="utf-8") == "Hello, world"

    def test_forced_inline(self, tmp_path):
        ctx = _ctx(tmp_path)
        assert text_source(ctx, "it's", inline=True) == "text='it'\\\\\\''s'"
        assert ctx.artifacts == []

    def test_same_text_same_file(self, tmp_path):
        ctx = _ctx(tmp_path)
        assert text_source(ctx, "a;b") == text_source(ctx, "a;b")
        assert len(ctx.artifacts) == 1


class TestBuildTextOverlays:
    def test_chain(self):
        ctx = _ctx()
        ctx.graph.add("null", ["0:v"], ["base"])
        clip = _text(mode="word-replace")
        label = build_text_overlays(ctx, expand_text_windows([clip]), "base")
        assert label == TEXT_OUTPUT_LABEL
        ops = [node.serialize() for node in ctx.graph.nodes]
        assert ops[1].startswith("[base]drawtext=text='a'")
        assert ops[1].endswith("[vtext0]")
        assert ops[-1] == "[vtext2]null[outVideoAndText]"
        ctx.graph.check([label])

    def test_empty_passthrough(self):
        ctx = _ctx()
        assert build_text_overlays(ctx, [], "base") == "base"
        assert len(ctx.graph) == 0


class TestBatching:
    def test_batch_sizes(self):
        clip = _text()
        windows = [TextWindow(clip, str(i), 0, 1) for i in range(5)]
        assert [len(b) for b in batch_windows(windows, 2)] == [2, 2, 1]

    def test_text_pass_graph(self, tmp_path):
        clip = _text(text="Hello")
        graph, artifacts = build_text_pass_graph(
            [TextWindow(clip, "Hello", 0, 3)], 640, 360, 30, tmp_path,
        )
        assert graph.startswith("[0:v]null[invid];[invid]drawtext=text='Hello'")
        assert graph.endswith("[vtext0]null[outVideoAndText]")
        assert artifacts == []
