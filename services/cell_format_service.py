"""
Render openpyxl cell values the way Excel shows them, using the cell's
number_format.

Covers fixed/thousands/percent/scientific/currency number formats and
date/time formats. ``render_number_format`` returns None when the format is
General (or not understood), so callers fall back to the plain value.
"""
import datetime
import re
from typing import List, Optional, Tuple

from openpyxl.styles.numbers import is_date_format

_DIGIT_PLACEHOLDERS = "0#?"

_DATE_TOKEN_RE = re.compile(
    r'"[^"]*"|\\.|\[[^\]]*\]|am/pm|a/p|yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|\.0+|.',
    re.IGNORECASE,
)


def _hour(v, twelve_hour: bool) -> int:
    return (v.hour % 12 or 12) if twelve_hour else v.hour


_DATE_PARTS = {
    "yyyy": lambda v, t: f"{v.year:04d}",
    "yy": lambda v, t: f"{v.year % 100:02d}",
    "mmmmm": lambda v, t: v.strftime("%B")[0],
    "mmmm": lambda v, t: v.strftime("%B"),
    "mmm": lambda v, t: v.strftime("%b"),
    "dddd": lambda v, t: v.strftime("%A"),
    "ddd": lambda v, t: v.strftime("%a"),
    "dd": lambda v, t: f"{v.day:02d}",
    "d": lambda v, t: str(v.day),
    "hh": lambda v, t: f"{_hour(v, t):02d}",
    "h": lambda v, t: str(_hour(v, t)),
    "ss": lambda v, t: f"{v.second:02d}",
    "s": lambda v, t: str(v.second),
    "am/pm": lambda v, t: "AM" if v.hour < 12 else "PM",
    "a/p": lambda v, t: "A" if v.hour < 12 else "P",
}

_HOUR_TOKENS = ("h", "hh", "[h]", "[hh]")


def _sections(number_format: str) -> List[str]:
    # ';' separates positive;negative;zero;text sections, except inside quotes
    sections, current, in_quotes = [], [], False
    for ch in number_format:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == ";" and not in_quotes:
            sections.append("".join(current))
            current = []
        else:
            current.append(ch)
    sections.append("".join(current))
    return sections


# Dates

def _is_minute(kinds: List[str], idx: int) -> bool:
    """'m'/'mm' means minutes right after an hour or right before seconds."""
    for k in reversed(kinds[:idx]):
        if k in _DATE_PARTS or k in ("m", "mm") or k in _HOUR_TOKENS:
            if k in _HOUR_TOKENS:
                return True
            break
    for k in kinds[idx + 1:]:
        if k in _DATE_PARTS or k in ("m", "mm"):
            return k in ("s", "ss")
    return False


def _format_date(value, section: str) -> Optional[str]:
    tokens = _DATE_TOKEN_RE.findall(section)
    kinds = [t.lower() for t in tokens]
    twelve_hour = "am/pm" in kinds or "a/p" in kinds

    out = []
    try:
        for idx, (tok, kind) in enumerate(zip(tokens, kinds)):
            if tok.startswith('"'):
                out.append(tok[1:-1])
            elif tok.startswith("\\"):
                out.append(tok[1:])
            elif tok.startswith("["):
                if kind in _HOUR_TOKENS:
                    out.append(_DATE_PARTS[kind[1:-1]](value, False))
                # locale and colour codes print nothing
            elif kind in ("m", "mm"):
                number = value.minute if _is_minute(kinds, idx) else value.month
                out.append(f"{number:02d}" if kind == "mm" else str(number))
            elif kind in _DATE_PARTS:
                out.append(_DATE_PARTS[kind](value, twelve_hour))
            elif kind.startswith(".0"):
                out.append("." + f"{value.microsecond:06d}"[:len(kind) - 1])
            else:
                out.append(tok)
    except AttributeError:
        # e.g. a time-only value under a format with year/month parts
        return None
    return "".join(out)


# Numbers

def _split_number_section(section: str) -> Tuple[str, str, str, bool]:
    """Split a number section into (prefix, placeholder pattern, suffix, is_percent)."""
    prefix, pattern, suffix = [], [], []
    percent = False
    i = 0
    while i < len(section):
        ch = section[i]
        if ch == '"':
            end = section.find('"', i + 1)
            end = len(section) if end == -1 else end
            literal = section[i + 1:end]
            i = end + 1
        elif ch == "\\":
            literal = section[i + 1:i + 2]
            i += 2
        elif ch == "[":
            end = section.find("]", i)
            end = len(section) if end == -1 else end
            inner = section[i + 1:end]
            # [$€-407] carries a currency symbol; colours and conditions print nothing
            literal = inner[1:].split("-")[0] if inner.startswith("$") else ""
            i = end + 1
        elif ch in "_*":
            # width padding / repeat fill
            literal = ""
            i += 2
        elif ch in _DIGIT_PLACEHOLDERS or (
            ch in ".," and (pattern or section[i + 1:i + 2] in tuple(_DIGIT_PLACEHOLDERS))
        ):
            pattern.append(ch)
            i += 1
            continue
        else:
            if ch == "%":
                percent = True
            literal = ch
            i += 1

        (suffix if pattern else prefix).append(literal)

    return "".join(prefix), "".join(pattern), "".join(suffix), percent


def _format_number(value: float, pattern: str) -> str:
    int_raw, _, dec_raw = pattern.partition(".")

    # Trailing commas scale by thousands
    raw = dec_raw if dec_raw else int_raw
    scale = len(raw) - len(raw.rstrip(","))
    if dec_raw:
        dec_raw = dec_raw.rstrip(",")
    else:
        int_raw = int_raw.rstrip(",")
    value = value / (1000 ** scale)

    min_dec = dec_raw.count("0")
    max_dec = sum(1 for c in dec_raw if c in _DIGIT_PLACEHOLDERS)
    grouping = "," if "," in int_raw else ""

    text = f"{value:{grouping}.{max_dec}f}"
    if max_dec > min_dec:
        whole, _, frac = text.partition(".")
        frac = frac.rstrip("0")
        frac = frac + "0" * (min_dec - len(frac)) if len(frac) < min_dec else frac
        text = f"{whole}.{frac}" if frac else whole

    # No '0' in the integer part: a zero integer prints nothing ("#.00" -> ".50")
    if "0" not in int_raw and text.startswith("0"):
        text = text[1:]
    return text


def _format_numeric(value: float, number_format: str) -> Optional[str]:
    sections = _sections(number_format)
    sign = ""
    if value < 0 and len(sections) > 1:
        section, value = sections[1], -value
    elif value == 0 and len(sections) > 2:
        section = sections[2]
    else:
        section = sections[0]
        if value < 0:
            sign, value = "-", -value

    if section.strip().lower() == "general":
        return None

    if re.search(r"[eE][+-]", section):
        mantissa = section.split("E")[0].split("e")[0]
        decimals = sum(1 for c in mantissa.partition(".")[2] if c in _DIGIT_PLACEHOLDERS)
        return f"{sign}{value:.{decimals}E}"

    prefix, pattern, suffix, percent = _split_number_section(section)
    if "/" in section and pattern:
        # fractions are not rendered
        return None
    if percent:
        value *= 100

    number = _format_number(value, pattern) if pattern else ""
    return f"{sign}{prefix}{number}{suffix}".strip()


def render_number_format(value, number_format: Optional[str]) -> Optional[str]:
    """
    Return the text Excel would display for `value` under `number_format`,
    or None when the plain value should be used instead.
    """
    fmt = (number_format or "General").strip()
    if value is None or isinstance(value, (bool, str)) or fmt.lower() == "general" or fmt == "@":
        return None

    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return _format_date(value, _sections(fmt)[0])

    if isinstance(value, (int, float)):
        if is_date_format(fmt):
            return None
        return _format_numeric(float(value), fmt)

    return None
