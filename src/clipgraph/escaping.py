"""Escaping for values embedded in filter_complex.

A quoted filter option is unescaped twice by FFmpeg: once when the graph
is split into filters, once when the filter parses its options. Inside
single quotes nothing is special, so a literal quote has to close the
quoted run, appear escaped for both levels, and reopen the run.

Commands are passed to the process as argv lists, so no shell quoting is
layered on top of these.
"""

_QUOTE = "'\\\\\\''"  # '\\\''

PROBLEMATIC_CHARS = set(",;{}[]\"'")


def escape_drawtext_text(text) -> str:
    """Escape text for drawtext's `text='...'` option.

    Newlines become spaces (drawtext would render them as boxes). Returns
    "" for anything that is not a string.
    """
    if not isinstance(text, str):
        return ""
    return (
        text.replace("\r\n", " ")
        .replace("\n", " ")
        .replace("\\", "\\\\")
        .replace("'", _QUOTE)
        .replace(":", "\\:")
    )


def has_problematic_chars(text) -> bool:
    """True when inline text is fragile enough to go through a textfile.

    Filter separators, brackets, quotes and any non-ASCII character count.
    """
    if not isinstance(text, str):
        return False
    return any(c in PROBLEMATIC_CHARS or ord(c) > 127 for c in text)


def escape_filter_path(path) -> str:
    """Escape a file path for a quoted filter option (textfile, fontfile, ass)."""
    return (
        str(path)
        .replace("\\", "/")
        .replace(":", "\\:")
        .replace("'", _QUOTE)
    )
