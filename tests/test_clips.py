"""Tests for clip models and the discriminated clip union."""

import pydantic
import pytest

from clipgraph.clips import (
    ColorClip,
    Gradient,
    ImageClip,
    KenBurns,
    MusicClip,
    SubtitleClip,
    TextClip,
    VideoClip,
    WatermarkClip,
    parse_clip,
    picture_track,
)


class TestParseClip:
    def test_dispatches_on_type(self):
        clip = parse_clip({"type": "video", "url": "a.mp4", "position": 0, "end": 5})
        assert isinstance(clip, VideoClip)
        assert clip.url == "a.mp4"

    def test_unknown_type_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            parse_clip({"type": "hologram", "position": 0, "end": 1})

    def test_unknown_field_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="colour"):
            parse_clip({"type": "color", "position": 0, "end": 1, "colour": "red"})


class TestTemporal:
    def test_duration_becomes_end(self):
        clip = parse_clip({"type": "color", "position": 2, "duration": 3})
        assert clip.end == 5
        assert clip.duration == 3

    def test_end_and_duration_both_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="not both"):
            parse_clip({"type": "color", "position": 0, "end": 2, "duration": 2})

    def test_end_must_follow_position(self):
        with pytest.raises(pydantic.ValidationError, match="greater than 'position'"):
            ColorClip(position=3, end=3)

    def test_end_required(self):
        with pytest.raises(pydantic.ValidationError, match="required"):
            ColorClip(position=0)

    def test_music_end_optional(self):
        clip = MusicClip(url="m.mp3")
        assert clip.end is None
        assert clip.volume == 0.2

    def test_negative_position_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            ColorClip(position=-1, end=1)

    def test_frozen(self):
        clip = ColorClip(position=0, end=1)
        with pytest.raises(pydantic.ValidationError):
            clip.position = 4


class TestTransition:
    def test_string_shorthand(self):
        clip = parse_clip({
            "type": "color", "position": 0, "end": 2, "transition": "wipeleft",
        })
        assert clip.transition.kind == "wipeleft"
        assert clip.transition.duration == 0.5

    def test_type_alias(self):
        clip = parse_clip({
            "type": "color", "position": 0, "end": 2,
            "transition": {"type": "dissolve", "duration": 1},
        })
        assert clip.transition.kind == "dissolve"
        assert clip.transition.duration == 1

    def test_unknown_kind_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Unknown transition"):
            parse_clip({
                "type": "color", "position": 0, "end": 2, "transition": "spin",
            })

    def test_zero_duration_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            parse_clip({
                "type": "color", "position": 0, "end": 2,
                "transition": {"kind": "fade", "duration": 0},
            })


class TestImageClip:
    def test_preset_name(self):
        clip = ImageClip(url="a.png", position=0, end=3, ken_burns="zoom-in")
        assert clip.ken_burns == "zoom-in"

    def test_unknown_preset_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Ken Burns"):
            ImageClip(url="a.png", position=0, end=3, ken_burns="spiral")

    def test_custom_spec(self):
        clip = ImageClip(
            url="a.png", position=0, end=3,
            ken_burns={"type": "custom", "start_zoom": 1.0, "end_zoom": 1.3},
        )
        assert isinstance(clip.ken_burns, KenBurns)
        assert clip.ken_burns.end_zoom == 1.3

    def test_position_out_of_range_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            KenBurns(start_x=1.5)


class TestColorClip:
    def test_default_black(self):
        assert ColorClip(position=0, end=1).color == "black"

    def test_gradient(self):
        clip = ColorClip(
            position=0, end=1,
            color={"type": "radial-gradient", "colors": ["#000000", "#ffffff"]},
        )
        assert isinstance(clip.color, Gradient)

    def test_gradient_needs_two_colors(self):
        with pytest.raises(pydantic.ValidationError):
            ColorClip(position=0, end=1, color={"colors": ["#000000"]})

    def test_unknown_color_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Unknown color"):
            ColorClip(position=0, end=1, color="blurple")


class TestTextClip:
    def test_static_requires_text(self):
        with pytest.raises(pydantic.ValidationError, match="non-empty"):
            TextClip(position=0, end=2, text="   ")

    def test_words_satisfy_word_modes(self):
        clip = TextClip(
            position=0, end=2, mode="word-replace",
            words=[{"text": "hi", "start": 0, "end": 1}],
        )
        assert clip.words[0].text == "hi"

    def test_animation_shorthand(self):
        clip = TextClip(position=0, end=2, text="hi", animation="fade-in")
        assert clip.animation.type == "fade-in"

    def test_animation_in_alias(self):
        clip = TextClip(position=0, end=2, text="hi",
                        animation={"type": "pop", "in": 0.4})
        assert clip.animation.in_ == 0.4


class TestSubtitleClip:
    def test_file(self):
        clip = SubtitleClip(url="captions.srt")
        assert clip.end is None

    def test_unsupported_extension(self):
        with pytest.raises(pydantic.ValidationError, match="Unsupported subtitle"):
            SubtitleClip(url="captions.txt")

    def test_inline_text_needs_end(self):
        with pytest.raises(pydantic.ValidationError, match="requires 'end'"):
            SubtitleClip(text="hello", position=1)

    def test_needs_source(self):
        with pytest.raises(pydantic.ValidationError, match="'url' or 'text'"):
            SubtitleClip(position=0, end=1)


class TestWatermarkClip:
    def test_image_needs_url(self):
        with pytest.raises(pydantic.ValidationError, match="require 'url'"):
            WatermarkClip(mode="image")

    def test_text_needs_text(self):
        with pytest.raises(pydantic.ValidationError, match="require 'text'"):
            WatermarkClip(mode="text")

    def test_bad_placement(self):
        with pytest.raises(pydantic.ValidationError, match="placement"):
            WatermarkClip(url="logo.png", placement="middle")

    def test_custom_placement_cannot_mix(self):
        with pytest.raises(pydantic.ValidationError, match="mix"):
            WatermarkClip(url="logo.png", placement={"x_percent": 0.5, "y": 10})


class TestPictureTrack:
    def test_filters_and_sorts(self):
        clips = [
            ColorClip(position=5, end=10),
            TextClip(position=0, end=1, text="x"),
            ColorClip(position=0, end=5, color="red"),
        ]
        track = picture_track(clips)
        assert [c.position for c in track] == [0, 5]
        assert track[0].color == "red"
