"""Tests for the audio track builder."""

from clipgraph.audio import (
    build_audio_track,
    build_music,
    build_picture_audio,
    build_standalone_audio,
)
from clipgraph.clips import AudioClip, ColorClip, MusicClip, VideoClip
from clipgraph.context import CompileContext
from clipgraph.picture import build_picture_track


def _video(position, end, transition=None, has_audio=True, **kwargs):
    return VideoClip(
        url=f"clip{int(position)}.mp4", position=position, end=end,
        transition=transition, has_audio=has_audio, **kwargs,
    )


def _three_clips_with_transitions():
    fade = {"kind": "fade", "duration": 0.5}
    return [_video(0, 5), _video(5, 10, fade), _video(10, 15, fade)]


def _built(clips):
    ctx = CompileContext(width=640, height=360, fps=30)
    track = build_picture_track(ctx, clips)
    return ctx, track


class TestPictureAudio:
    def test_delays_follow_transition_offsets(self):
        clips = _three_clips_with_transitions()
        ctx, track = _built(clips)
        label = build_picture_audio(ctx, clips, track)
        graph = ctx.graph.serialize()
        assert "[0:a]volume=1,atrim=start=0:duration=5,asetpts=PTS-STARTPTS,adelay=0|0[va0]" in graph
        assert "adelay=4500|4500[va1]" in graph
        assert "adelay=9000|9000[va2]" in graph
        assert "[va0][va1][va2]amix=inputs=3:duration=longest[outa0]" in graph
        assert label == "outa0"

    def test_silent_clips_skipped(self):
        clips = [_video(0, 5, has_audio=False), _video(5, 10)]
        ctx, track = _built(clips)
        build_picture_audio(ctx, clips, track)
        graph = ctx.graph.serialize()
        assert "[0:a]" not in graph
        assert "[1:a]" in graph

    def test_none_without_audio(self):
        clips = [ColorClip(position=0, end=5)]
        ctx, track = _built(clips)
        assert build_picture_audio(ctx, clips, track) is None

    def test_volume_and_cut_from(self):
        clips = [_video(0, 4, volume=0.5, cut_from=2)]
        ctx, track = _built(clips)
        build_picture_audio(ctx, clips, track)
        assert "volume=0.5,atrim=start=2:duration=4" in ctx.graph.serialize()


class TestStandaloneAudio:
    def test_mixed_with_existing(self):
        clips = _three_clips_with_transitions()
        ctx, track = _built(clips)
        existing = build_picture_audio(ctx, clips, track)
        narration = AudioClip(url="voice.mp3", position=5, end=7)
        label = build_standalone_audio(ctx, [narration], existing)
        graph = ctx.graph.serialize()
        assert "[3:a]volume=1,atrim=start=0:duration=2,asetpts=PTS-STARTPTS,adelay=4500|4500[a0]" in graph
        assert "[outa0][a0]amix=inputs=2:duration=longest[mixaudio0]" in graph
        assert label == "mixaudio0"

    def test_passthrough_without_clips(self):
        ctx = CompileContext()
        assert build_standalone_audio(ctx, [], "outa0") == "outa0"


class TestMusic:
    def test_runs_to_visual_end(self):
        ctx = CompileContext()
        label = build_music(ctx, [MusicClip(url="bed.mp3", position=2)], None, 14)
        graph = ctx.graph.serialize()
        assert "[0:a]volume=0.2,atrim=start=0:end=12,asetpts=PTS-STARTPTS,adelay=2000|2000[bg0]" in graph
        assert label == "finalaudio0"

    def test_raw_position_delay(self):
        # Music ignores transition offsets.
        clips = _three_clips_with_transitions()
        ctx, track = _built(clips)
        build_music(ctx, [MusicClip(url="bed.mp3", position=10, end=14)], None, 14)
        assert "adelay=10000|10000[bg0]" in ctx.graph.serialize()

    def test_anchor_and_weights_with_existing(self):
        ctx = CompileContext()
        ctx.graph.add("anullsrc", [], ["outa0"])
        label = build_music(ctx, [MusicClip(url="bed.mp3")], "outa0", 14)
        graph = ctx.graph.serialize()
        assert "anullsrc=cl=stereo,atrim=end=14[bgmpad0]" in graph
        assert (
            "[bgmpad0][outa0][bg0]amix=inputs=3:duration=longest:"
            "weights='0 0.500000 0.500000':normalize=0[finalaudio0]"
        ) in graph
        assert label == "finalaudio0"

    def test_capped_by_media(self):
        ctx = CompileContext()
        clip = MusicClip(url="bed.mp3", media_duration=5, cut_from=1)
        build_music(ctx, [clip], None, 14)
        assert "atrim=start=1:end=5" in ctx.graph.serialize()

    def test_nothing_to_play_skipped(self, caplog):
        ctx = CompileContext()
        clip = MusicClip(url="bed.mp3", position=20)
        assert build_music(ctx, [clip], "outa0", 14) == "outa0"
        assert "nothing to play" in caplog.text


class TestBuildAudioTrack:
    def test_fitted_to_visual_end(self):
        clips = _three_clips_with_transitions()
        ctx, track = _built(clips)
        label = build_audio_track(ctx, clips, track, [], [], track.duration)
        assert label == "audfit0"
        assert "[outa0]apad,atrim=end=14[audfit0]" in ctx.graph.serialize()
        ctx.graph.check([track.label, label])

    def test_none_when_silent(self):
        clips = [ColorClip(position=0, end=5)]
        ctx, track = _built(clips)
        assert build_audio_track(ctx, clips, track, [], [], 5) is None
