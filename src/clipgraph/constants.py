"""Default values shared across the compiler, manifest loader and renderer."""

# ── Canvas ────────────────────────────────────────────────────────

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FPS = 30

# ── Encoding ──────────────────────────────────────────────────────

DEFAULT_EXPORT = {
    "video_codec": "libx264",
    "crf": 23,
    "preset": "medium",
    "video_bitrate": None,
    "audio_codec": "aac",
    "audio_bitrate": "192k",
    "audio_sample_rate": 48000,
    "text_batch_size": 75,
    "intermediate_codec": "libx264",
    "intermediate_crf": 18,
    "intermediate_preset": "veryfast",
}

VIDEO_PRESETS = {
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow",
}

# Platform presets: (width, height, fps).
PLATFORM_PRESETS = {
    # Vertical 9:16
    "tiktok": (1080, 1920, 30),
    "youtube-short": (1080, 1920, 30),
    "instagram-reel": (1080, 1920, 30),
    "instagram-story": (1080, 1920, 30),
    "snapchat": (1080, 1920, 30),
    # Square 1:1
    "instagram-post": (1080, 1080, 30),
    "instagram-square": (1080, 1080, 30),
    # Horizontal 16:9
    "youtube": (1920, 1080, 30),
    "twitter": (1920, 1080, 30),
    "facebook": (1920, 1080, 30),
    "landscape": (1920, 1080, 30),
    # 4:5
    "twitter-portrait": (1080, 1350, 30),
    "instagram-portrait": (1080, 1350, 30),
}

# ── Timeline ──────────────────────────────────────────────────────

GAP_EPSILON = 1e-3
DEFAULT_TRANSITION_DURATION = 0.5

# ── Audio ─────────────────────────────────────────────────────────

DEFAULT_VOLUME = 1.0
DEFAULT_MUSIC_VOLUME = 0.2

# ── Text ──────────────────────────────────────────────────────────

DEFAULT_FONT_FAMILY = "Sans"
DEFAULT_FONT_SIZE = 48
DEFAULT_FONT_COLOR = "#FFFFFF"
DEFAULT_TEXT_ANIM_IN = 0.25
DEFAULT_TEXT_ANIM_INTENSITY = 0.3
DEFAULT_TYPEWRITER_SPEED = 0.05  # seconds per character
DEFAULT_PULSE_SPEED = 1.0  # cycles per second
DEFAULT_KARAOKE_HIGHLIGHT = "#FFFF00"

# ── Watermark ─────────────────────────────────────────────────────

DEFAULT_WATERMARK_SCALE = 0.15
DEFAULT_WATERMARK_MARGIN = 20
DEFAULT_WATERMARK_FONT_SIZE = 24
