"""
Small string helpers shared by the extractors, parsers and generators.
"""

from __future__ import annotations

import re
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Iterable, List, Optional

_KEYIZE_RE = re.compile(r"(?:^\w|[A-Z]|\b\w|\s+)")
_REGEXP_SPECIALS_RE = re.compile(r"[.*+?^${}()|[\]\\]")
_LEADING_INDENT_RE = re.compile(r"^[ \t]+", re.MULTILINE)

_TYPOGRAPHIC = {
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
}


def keyize(value: str) -> str:
    """Turn a label such as ``"Company website"`` into ``company_website``.

    Whitespace is dropped, the first word character is lowercased and every
    other capital letter or word-initial character is prefixed with ``_``.
    """

    def _replace(match: re.Match) -> str:
        token = match.group(0)
        if token.isspace() or token == "0":
            return ""
        if match.start() == 0:
            return token.lower()
        return "_" + token.lower()

    return _KEYIZE_RE.sub(_replace, value or "")


def dont_indent(value: Any) -> str:
    """Strip the leading spaces and tabs of every line."""
    return _LEADING_INDENT_RE.sub("", str(value))


def escape_regexp(value: str) -> str:
    """Escape ``value`` for use in a regex, letting any whitespace run match ``\\s+``."""
    escaped = _REGEXP_SPECIALS_RE.sub(lambda m: "\\" + m.group(0), value or "")
    return re.sub(r"\s+", r"\\s+", escaped)


def find_nested(data: Iterable[dict], predicate: Callable[[dict], Any]) -> Optional[dict]:
    """Depth-first search through nodes carrying optional ``elements`` children."""
    for item in data or []:
        if predicate(item):
            return item
        children = item.get("elements") if isinstance(item, dict) else None
        if children:
            found = find_nested(children, predicate)
            if found is not None:
                return found
    return None


def clean_string(value: str) -> str:
    """Normalize the typographic noise WordPress leaves in post bodies."""
    text = (value or "").replace("\r\n", "\n")
    text = text.replace("&nbsp;", " ").replace("\xa0", " ")
    for char, replacement in _TYPOGRAPHIC.items():
        text = text.replace(char, replacement)
    return text


def to_iso_date(pub_date: str) -> Optional[str]:
    """RFC 822 ``pubDate`` -> ``2021-03-04T15:00:00.000Z``."""
    if not pub_date:
        return None
    try:
        parsed = parsedate_to_datetime(pub_date)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid pubDate: {pub_date!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def meta_text(value: Any) -> str:
    """Post-meta value as stripped text; decoded PHP arrays are joined with ``, ``."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return ", ".join(meta_list(value))
    return str(value).strip()


def meta_list(value: Any) -> List[str]:
    """Non-empty stripped entries of a post-meta value (a plain string gives one entry)."""
    if isinstance(value, dict):
        value = list(value.values())
    if not isinstance(value, list):
        value = [value]
    return [text for text in (meta_text(v) for v in value) if text]
