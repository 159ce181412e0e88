"""Media probing — duration, size, rotation and audio presence of sources.

imageio-ffmpeg ships no ffprobe, so probing goes through moviepy's parser
of `ffmpeg -i` output, which runs the same bundled binary.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from moviepy.video.io.ffmpeg_reader import ffmpeg_parse_infos

from .clips import AudioClip, ImageClip, MusicClip, SubtitleClip, VideoClip, WatermarkClip
from .common import format_number
from .errors import MediaNotFoundError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}


@dataclass(frozen=True)
class MediaInfo:
    duration: float | None = None
    width: int | None = None
    height: int | None = None
    rotation: int = 0
    has_audio: bool = False
    sample_rate: int | None = None


def probe_media(path: str | Path) -> MediaInfo:
    """Probe a media file.

    Width and height are reported as displayed: a 90/270 degree rotation
    swaps them.

    Raises:
        MediaNotFoundError: The file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise MediaNotFoundError(path)

    is_image = path.suffix.lower() in IMAGE_EXTENSIONS
    infos = ffmpeg_parse_infos(str(path), check_duration=not is_image)

    width = height = None
    size = infos.get("video_size")
    if infos.get("video_found") and size:
        width, height = int(size[0]), int(size[1])

    rotation = abs(int(infos.get("video_rotation", 0) or 0)) % 360
    if rotation in (90, 270) and width is not None:
        width, height = height, width

    duration = None if is_image else infos.get("duration")
    sample_rate = infos.get("audio_fps") if infos.get("audio_found") else None

    return MediaInfo(
        duration=float(duration) if duration else None,
        width=width,
        height=height,
        rotation=rotation,
        has_audio=bool(infos.get("audio_found")),
        sample_rate=int(sample_rate) if sample_rate else None,
    )


def _clamp_to_source(clip, info: MediaInfo, index: int):
    """Cap a clip's end at the source media; return the updated fields."""
    if info.duration is None:
        return {}
    update = {"media_duration": info.duration}
    available = info.duration - clip.cut_from
    if available <= 0:
        raise ValidationError(
            f"Clip {index} ({clip.type}): cut_from ({format_number(clip.cut_from, 3)}s) "
            f"is at or beyond the end of {clip.url} ({format_number(info.duration, 3)}s)"
        )
    if clip.end is not None and clip.end - clip.position > available:
        new_end = clip.position + available
        logger.warning(
            "Clip %d (%s): requested %ss but %s only has %ss after cut_from; "
            "end clamped to %ss",
            index, clip.type, format_number(clip.end - clip.position, 3), clip.url,
            format_number(available, 3), format_number(new_end, 3),
        )
        update["end"] = new_end
    return update


def attach_media_info(clips: list, prober=probe_media) -> list:
    """Return new clips with probed media fields filled in.

    Video, audio and music clips get `media_duration` (and video clips
    their size, rotation and audio flag); requests longer than the source
    are clamped with a warning. Images with Ken Burns motion get their
    size. Subtitle files and image watermarks are checked for existence.

    Raises:
        MediaNotFoundError: A referenced file does not exist.
        ValidationError: A clip starts (cut_from) past the end of its source.
    """
    result = []
    for i, clip in enumerate(clips):
        if isinstance(clip, VideoClip):
            info = prober(clip.url)
            update = _clamp_to_source(clip, info, i)
            update.update(
                has_audio=info.has_audio, width=info.width,
                height=info.height, rotation=info.rotation,
            )
            clip = clip.model_copy(update=update)
        elif isinstance(clip, (AudioClip, MusicClip)):
            info = prober(clip.url)
            update = _clamp_to_source(clip, info, i)
            if update:
                clip = clip.model_copy(update=update)
        elif isinstance(clip, ImageClip):
            if clip.ken_burns:
                info = prober(clip.url)
                clip = clip.model_copy(update={"width": info.width, "height": info.height})
            elif not Path(clip.url).exists():
                raise MediaNotFoundError(clip.url)
        elif isinstance(clip, SubtitleClip) and clip.url is not None:
            if not Path(clip.url).exists():
                raise MediaNotFoundError(clip.url)
        elif isinstance(clip, WatermarkClip) and clip.mode == "image":
            if not Path(clip.url).exists():
                raise MediaNotFoundError(clip.url)
        result.append(clip)
    return result
