"""
Tenant Evidence - Text Utilities

Utilities for text processing in report generation.
"""

import re
from datetime import datetime

# HTML entities the chat backend leaves escaped in message bodies
HTML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&nbsp;", " "),
)

# Emoji that the standard PDF fonts cannot draw, with ASCII stand-ins
EMOJI_REPLACEMENTS = (
    ("\U0001F4DE", "[Call]"),      # telephone receiver
    ("\U0001F4AC", "[Message]"),   # speech balloon
    ("\U0001F4E7", "[Email]"),     # e-mail
    ("\U0001F4F7", "[Photo]"),     # camera
    ("\U0001F916", "[AI]"),        # robot
    ("\U0001F464", "[User]"),      # bust in silhouette
    ("\U0001F680", ""),            # rocket
    ("\u2705", "[OK]"),          # check mark button
    ("\u274C", "[X]"),           # cross mark
    ("\u26A0\uFE0F", "[!]"),     # warning (emoji presentation)
    ("\u26A0", "[!]"),           # warning
    ("\U0001F4CB", "[List]"),      # clipboard
    ("\U0001F4C1", "[Folder]"),    # file folder
    ("\U0001F4C4", "[Doc]"),       # page facing up
    ("\U0001F517", "[Link]"),      # link
    ("\u2713", "[OK]"),          # check mark
    ("\u2714", "[OK]"),          # heavy check mark
    ("\U0001F60A", ":)"),          # smiling face
)

# English month names, independent of the process locale
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")
_FENCE_OPEN = re.compile(r"```\w*\n?")
_EMOJI_PATTERN = re.compile("|".join(re.escape(emoji) for emoji, _ in EMOJI_REPLACEMENTS))
_EMOJI_MAP = dict(EMOJI_REPLACEMENTS)


def clean_text(text: str) -> str:
    """
    Prepare chat or log text for the standard PDF fonts.

    Unescapes the common HTML entities, drops code-fence delimiters from
    complete fenced blocks and swaps known emoji for bracketed ASCII.

    Args:
        text: Raw text

    Returns:
        Cleaned, stripped text
    """
    if not text:
        return ""

    cleaned = text
    for entity, char in HTML_ENTITIES:
        cleaned = cleaned.replace(entity, char)

    cleaned = _FENCED_BLOCK.sub(
        lambda m: _FENCE_OPEN.sub("", m.group(0)).replace("```", ""),
        cleaned,
    )

    cleaned = _EMOJI_PATTERN.sub(lambda m: _EMOJI_MAP[m.group(0)], cleaned)

    return cleaned.strip()


def pdf_safe(text: str) -> str:
    """
    Restrict text to what the built-in Helvetica/Courier fonts can encode.

    Characters outside Windows-1252 become '?'.
    """
    if not text:
        return ""
    return text.encode("cp1252", errors="replace").decode("cp1252")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()


def truncate_cell(text: str, max_chars: int) -> str:
    """
    Truncate table cell text to fit a fixed-width column.

    Text longer than ``max_chars`` keeps ``max_chars - 2`` characters and
    gains a '..' suffix.
    """
    if len(text) <= max_chars:
        return text
    return text[:max(max_chars - 2, 0)] + ".."


def slugify_filename(title: str) -> str:
    """Turn a title into a lowercase, filename-safe slug ('-' for anything else)."""
    return re.sub(r"[^a-z0-9]", "-", title, flags=re.IGNORECASE).lower()


def _clock(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    return f"{hour}:{dt.minute:02d} {'AM' if dt.hour < 12 else 'PM'}"


def format_long_date(dt: datetime) -> str:
    """'March 5, 2024'"""
    return f"{MONTH_NAMES[dt.month - 1]} {dt.day}, {dt.year}"


def format_long_datetime(dt: datetime, separator: str = " at ") -> str:
    """'March 5, 2024 at 3:07 PM'"""
    return f"{format_long_date(dt)}{separator}{_clock(dt)}"


def format_short_datetime(dt: datetime) -> str:
    """'Mar 5, 3:07 PM'"""
    return f"{MONTH_NAMES[dt.month - 1][:3]} {dt.day}, {_clock(dt)}"
