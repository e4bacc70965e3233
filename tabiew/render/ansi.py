"""ANSI-aware text measurement and cell shaping utilities.

Escape sequences never count toward width; East Asian wide characters count
as two columns. Cell text is sanitized so data cannot move the cursor.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
ELLIPSIS = "…"


def char_display_width(ch: str) -> int:
    """Return terminal column width for one printable character."""
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Visible width of ``text`` with escape sequences removed."""
    return sum(char_display_width(ch) for ch in ANSI_ESCAPE_RE.sub("", text))


def sanitize_cell(text: str) -> str:
    """Replace control bytes in cell text; tabs and newlines become spaces."""
    if _CONTROL_RE.search(text) is None:
        return text

    out: list[str] = []
    for ch in text:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(" ")
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch)
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1

    return "".join(out)


def fit_cell(text: str, width: int, align_right: bool = False) -> str:
    """Pad or truncate plain ``text`` to exactly ``width`` columns."""
    if width <= 0:
        return ""
    shown = display_width(text)
    if shown > width:
        clipped = clip_ansi_line(text, max(0, width - 1))
        clipped += ELLIPSIS
        shown = display_width(clipped)
        text = clipped
    padding = " " * max(0, width - shown)
    return padding + text if align_right else text + padding


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "display_width",
    "sanitize_cell",
    "clip_ansi_line",
    "fit_cell",
]
