from __future__ import annotations

import re
from typing import Callable, List

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter
from markdownify import markdownify


VOID_TAGS = [
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr", "iframe", "video", "audio",
]
TABLE_CELL_TAGS = {"td", "th", "tr"}
EMPHASIS_TAGS = ["b", "strong", "i", "em"]
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
HEADING_UNWRAP_TAGS = ["strong", "b", "em", "emphasis"]
IMAGE_ATTRIBUTES = ("alt", "src")

_WORD_START_RE = re.compile(r"\w")

# Named entities, HTML5 void tags: <img src="x">
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_html,
    void_element_close_prefix=None,
)


def _is_text(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def remove_empty(soup: BeautifulSoup) -> None:
    """Drop elements that hold nothing but whitespace."""
    # reversed: children are visited before their parents
    for el in reversed(soup.find_all(True)):
        if el.name in VOID_TAGS or el.name in TABLE_CELL_TAGS:
            continue
        if el.find(VOID_TAGS) is not None:
            continue
        if el.get_text().strip():
            continue
        el.decompose()


def _move_leading_space(el: Tag) -> None:
    first = el.contents[0] if el.contents else None
    if not _is_text(first):
        return
    stripped = first.lstrip()
    if stripped == str(first):
        return
    if stripped:
        first.replace_with(NavigableString(stripped))
    else:
        first.extract()

    previous = el.previous_sibling
    if _is_text(previous):
        previous.replace_with(NavigableString(previous.rstrip() + " "))
    else:
        el.insert_before(NavigableString(" "))


def _move_trailing_space(el: Tag) -> None:
    moved = False
    last = el.contents[-1] if el.contents else None
    if _is_text(last):
        stripped = last.rstrip()
        if stripped != str(last):
            moved = True
            if stripped:
                last.replace_with(NavigableString(stripped))
            else:
                last.extract()

    following = el.next_sibling
    if _is_text(following):
        text = str(following)
        if moved or _WORD_START_RE.match(text):
            following.replace_with(NavigableString(" " + text.lstrip()))
    elif moved:
        el.insert_after(NavigableString(" "))


def fix_bold_spaces(soup: BeautifulSoup) -> None:
    """
    Move whitespace out of bold/italic runs.

    ``<b>Label:&nbsp; </b>value`` becomes ``<b>Label:</b> value`` so that the
    Markdown converter emits ``**Label:** value`` instead of a dangling
    ``**Label: **``.
    """
    for el in soup.find_all(EMPHASIS_TAGS):
        _move_leading_space(el)
        _move_trailing_space(el)


def strip_image(soup: BeautifulSoup) -> None:
    """Keep only ``alt`` and ``src`` on images (drops srcset, sizes, classes)."""
    for img in soup.find_all("img"):
        img.attrs = {k: v for k, v in img.attrs.items() if k in IMAGE_ATTRIBUTES}


def fix_headers(soup: BeautifulSoup) -> None:
    """Headings are already bold; unwrap strong/em runs inside them."""
    for heading in soup.find_all(HEADING_TAGS):
        for el in heading.find_all(HEADING_UNWRAP_TAGS):
            el.unwrap()


def strip_nbsp(soup: BeautifulSoup) -> None:
    for text in soup.find_all(string=True):
        if _is_text(text) and "\xa0" in text:
            text.replace_with(NavigableString(text.replace("\xa0", " ")))


PIPELINE: List[Callable[[BeautifulSoup], None]] = [
    remove_empty,
    fix_bold_spaces,
    strip_image,
    fix_headers,
    strip_nbsp,
]


def normalize_soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for step in PIPELINE:
        step(soup)
    return soup


def normalize_html(html: str) -> str:
    """Run every normalization pass over an HTML fragment and serialize it back."""
    return normalize_soup(html).decode(formatter=_FORMATTER)


def html_to_markdown(html: str) -> str:
    """Normalize a post body and convert it to Markdown."""
    soup = normalize_soup(html)
    markdown = markdownify(
        soup.decode(formatter=_FORMATTER),
        heading_style="ATX",
        bullets="*",
        strong_em_symbol="*",
    )
    # markdownify leaves runs of blank lines between blocks
    markdown = re.sub(r"\n{3,}", "\n\n", markdown)
    return markdown.strip()
