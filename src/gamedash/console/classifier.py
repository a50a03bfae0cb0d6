"""Classify raw console lines into display segments.

Game server logs arrive in one of two shapes:

- Raw terminal output carrying SGR color escapes (``ESC[31m``) or the
  game's own section-sign color codes (``§c``).  These are split into
  :class:`AnsiSpan` runs, one per stretch of text between codes.
- Structured log4j-style lines such as
  ``[12:34:56] [Server thread/INFO]: Done``, broken into a timestamp, a
  severity tag and the message.

Anything else is a single opaque :class:`Message`.  Classification is a
pure function of the input text.
"""

from __future__ import annotations

import re

from gamedash.models.console import AnsiSpan, Level, LogSegment, Message, Timestamp

# ESC [ params final-byte; only "m" (SGR) affects color, other CSI sequences are dropped.
_CSI_RE = re.compile(r"\x1b\[([0-9;?]*)([@-~])")
_SECTION_RE = re.compile(r"§([0-9a-fk-orA-FK-OR])")
_ESCAPE_RE = re.compile(rf"{_CSI_RE.pattern}|{_SECTION_RE.pattern}")

_TIMESTAMP_RE = re.compile(r"^(\[\d{2}:\d{2}:\d{2}\])\s*")
_LEVEL_RE = re.compile(r"^(\[[^\]]+/([A-Za-z]+)\]: )")

_SGR_COLORS: dict[int, str] = {
    30: "black",
    31: "red",
    32: "green",
    33: "yellow",
    34: "blue",
    35: "magenta",
    36: "cyan",
    37: "white",
    90: "bright_black",
    91: "bright_red",
    92: "bright_green",
    93: "bright_yellow",
    94: "bright_blue",
    95: "bright_magenta",
    96: "bright_cyan",
    97: "bright_white",
}
_SGR_RESET = {0, 39}
_SGR_EXTENDED = {38, 48}
_SGR_EXTENDED_ARGS = {"5": 1, "2": 3}

_SECTION_COLORS: dict[str, str] = {
    "0": "black",
    "1": "blue",
    "2": "green",
    "3": "cyan",
    "4": "red",
    "5": "magenta",
    "6": "yellow",
    "7": "white",
    "8": "bright_black",
    "9": "bright_blue",
    "a": "bright_green",
    "b": "bright_cyan",
    "c": "bright_red",
    "d": "bright_magenta",
    "e": "bright_yellow",
    "f": "bright_white",
}

_SEVERITY_STYLES: dict[str, str] = {
    "FATAL": "bold red",
    "ERROR": "red",
    "SEVERE": "red",
    "WARN": "yellow",
    "WARNING": "yellow",
    "DEBUG": "dim",
    "TRACE": "dim",
}


def has_color_codes(text: str) -> bool:
    return _ESCAPE_RE.search(text) is not None


def _apply_sgr(params: str, color: str | None) -> str | None:
    """Return the color in effect after an SGR parameter list."""
    if not params:
        return None
    parts = params.split(";")
    i = 0
    while i < len(parts):
        part = parts[i]
        i += 1
        if not part.isdigit():
            continue
        code = int(part)
        if code in _SGR_EXTENDED:
            # 38;5;N and 38;2;R;G;B: palette and truecolor arguments are not codes.
            mode = parts[i] if i < len(parts) else ""
            i += 1 + _SGR_EXTENDED_ARGS.get(mode, 0)
        elif code in _SGR_RESET:
            color = None
        elif code in _SGR_COLORS:
            color = _SGR_COLORS[code]
    return color


def _split_colored(text: str) -> list[AnsiSpan]:
    spans: list[AnsiSpan] = []
    color: str | None = None
    pos = 0
    for match in _ESCAPE_RE.finditer(text):
        if match.start() > pos:
            spans.append(AnsiSpan(color, text[pos : match.start()]))
        pos = match.end()

        params, final, section = match.group(1), match.group(2), match.group(3)
        if section is not None:
            code = section.lower()
            if code == "r":
                color = None
            elif code in _SECTION_COLORS:
                color = _SECTION_COLORS[code]
            # k-o are formatting codes (bold, italic, ...); color is unchanged.
        elif final == "m":
            color = _apply_sgr(params, color)

    if pos < len(text):
        spans.append(AnsiSpan(color, text[pos:]))
    return spans


def _split_structured(text: str) -> list[LogSegment]:
    segments: list[LogSegment] = []
    rest = text

    ts = _TIMESTAMP_RE.match(rest)
    if ts:
        segments.append(Timestamp(ts.group(1)))
        rest = rest[ts.end() :]

    level = _LEVEL_RE.match(rest)
    if level:
        segments.append(Level(level.group(2).upper(), level.group(1)))
        rest = rest[level.end() :]

    if not segments:
        return []
    if rest:
        segments.append(Message(rest))
    return segments


def classify_line(text: str) -> tuple[LogSegment, ...]:
    """Break one raw console line into an ordered tuple of display segments."""
    if has_color_codes(text):
        spans = _split_colored(text)
        return tuple(spans) if spans else (Message(""),)

    structured = _split_structured(text)
    if structured:
        return tuple(structured)
    return (Message(text),)


def severity_style(severity: str) -> str:
    """Rich style used to draw a severity tag (empty for the default)."""
    return _SEVERITY_STYLES.get(severity.upper(), "")


def strip_color_codes(text: str) -> str:
    return _ESCAPE_RE.sub("", text)
