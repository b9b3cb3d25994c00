"""
Field extraction for generation 2 user stories.

User stories were written in WordPress as a loose sequence of
``**Label:** value`` paragraphs ("Organization:", "Industry:", ...) followed
by body sections ("Background:", "Goals:", ...).  This module normalizes the
many spellings of those labels in the Markdown and then moves every labelled
paragraph into ``story.metadata`` or ``story.body``.  Whatever no label
claims is returned to the caller.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import markdown as markdown_lib
from bs4 import BeautifulSoup, NavigableString, Tag
from markdownify import markdownify

from wxr_static.models import UserStory
from wxr_static.utils.text import escape_regexp, keyize

SINGULAR = "singular"
PLURAL = "plural"
METADATA = "metadata"
BODY = "body"


@dataclass(frozen=True)
class FieldSpec:
    type: str
    section: str
    key: Optional[str] = None


FIELDS: Dict[str, FieldSpec] = {
    "Organization": FieldSpec(SINGULAR, METADATA),
    "Company": FieldSpec(SINGULAR, METADATA),
    "Company website": FieldSpec(SINGULAR, METADATA),
    "Project Website": FieldSpec(SINGULAR, METADATA),
    "Summary": FieldSpec(SINGULAR, METADATA),
    "Project Funding": FieldSpec(SINGULAR, METADATA),
    "Funded By": FieldSpec(SINGULAR, METADATA),
    "Industry": FieldSpec(PLURAL, METADATA, "industries"),
    "Programming Language": FieldSpec(PLURAL, METADATA, "programming_languages"),
    "Platform": FieldSpec(PLURAL, METADATA, "platforms"),
    "Version Control System": FieldSpec(PLURAL, METADATA, "version_control_systems"),
    "Build Tool": FieldSpec(PLURAL, METADATA, "build_tools"),
    "Community Support": FieldSpec(PLURAL, METADATA, "community_supports"),
    "Team Members": FieldSpec(PLURAL, METADATA, "team_members"),
    "Teammates": FieldSpec(PLURAL, METADATA, "team_members"),
    "Team": FieldSpec(PLURAL, METADATA, "teams"),
    "Plugin": FieldSpec(PLURAL, METADATA, "plugins"),

    "Background": FieldSpec(SINGULAR, BODY),
    "Goals": FieldSpec(SINGULAR, BODY),
    "Solution & Results": FieldSpec(SINGULAR, BODY, "solution"),
    "Solution and Results": FieldSpec(SINGULAR, BODY, "solution"),
    "Solution": FieldSpec(SINGULAR, BODY, "solution"),
    "References": FieldSpec(SINGULAR, BODY),
    "Results": FieldSpec(SINGULAR, BODY),
    "Challenge": FieldSpec(SINGULAR, BODY),
    # TODO: merge into the solution section instead of keeping its own key
    "Lab Book": FieldSpec(SINGULAR, BODY),
    "Deployer": FieldSpec(SINGULAR, BODY),
}

FIELD_ALIASES: Dict[str, str] = {
    "Project URL": "Project Website",
    "Project website": "Project Website",
    "Project": "Project Website",
    "Program URL": "Project Website",

    "KP Labs Team": "Team Members",
    "Arm Teammates": "Team Members",
    "IAM Robotics Team": "Team Members",
    "Team": "Team Members",
    "Team members": "Team Members",
    "Team Member": "Team Members",
    "Graylog team members": "Team Members",
    "Telstra Team": "Team Members",
    "Camunda Team Members": "Team Members",
    "Moogsoft Team": "Team Members",

    "Build Tools": "Build Tool",

    "Version Control": "Version Control System",

    "Project funding": "Project Funding",
    "Funding": "Project Funding",
    "Funded by": "Project Funding",

    "Goal": "Goals",

    "RESULTS": "Results",
}

SUBMITTED_BY = "submitted by jenkins user"

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BOLD_TAGS = ("strong", "b")
INLINE_MARK_TAGS = ["strong", "b", "em", "i"]
CONTINUATION_TAGS = ("p", "ul", "ol", "blockquote", "pre")

_SURROUNDING_STARS_RE = re.compile(r"^\*+(.*?)\*+$")
_IMAGE_RE = re.compile(
    r'\[!\[[^\]]*\]\((?P<linked>\S+?)(?:\s+"[^"]*")?\)\]\([^)]*\)'
    r'|!\[[^\]]*\]\((?P<plain>\S+?)(?:\s+"[^"]*")?\)'
)


def field_key(label: str) -> str:
    spec = FIELDS[label]
    return spec.key or keyize(label)


def strip_stars(text: str) -> str:
    return _SURROUNDING_STARS_RE.sub(r"\1", text)


def normalize_labels(md: str) -> str:
    """
    Rewrite the label spellings found in the export to ``**Label:** value``.

    Handles ``**Label: value**``, an unbolded ``Label:`` opening a line, a
    period stranded after a closing ``**`` and the split
    ``**Solution** **& Results:**``.
    """
    md = md.replace("&#x20;", " ").replace("<!-- -->", "")
    md = re.sub(r"\*\*\.[ \t]*$", ".**", md, flags=re.MULTILINE)

    for label in FIELDS:
        pattern = escape_regexp(label)
        md = re.sub(
            rf"^\*\*{pattern}:\s+(.*?)\*\*[ \t]*$",
            lambda m, label=label: f"**{label}:** {m.group(1)}",
            md,
            count=1,
            flags=re.MULTILINE | re.IGNORECASE,
        )
        md = re.sub(
            rf"^{pattern}:\s+",
            lambda m, label=label: f"**{label}:** ",
            md,
            count=1,
            flags=re.MULTILINE | re.IGNORECASE,
        )

    return md.replace("**Solution** **& Results:**", "**Solution & Results:**")


def extract_images(md: str) -> Tuple[str, List[str]]:
    """Remove every Markdown image (linked or not) and return their URLs in order."""
    urls: List[str] = []

    def _collect(match: re.Match) -> str:
        urls.append(match.group("linked") or match.group("plain"))
        return ""

    return _IMAGE_RE.sub(_collect, md), urls


def _to_markdown(nodes, *, plain: bool = False) -> str:
    fragment = BeautifulSoup("", "html.parser")
    for node in nodes:
        fragment.append(copy.copy(node))
    if plain:
        for el in fragment.find_all(INLINE_MARK_TAGS):
            el.unwrap()
    return markdownify(
        str(fragment),
        heading_style="ATX",
        bullets="*",
        escape_asterisks=not plain,
        escape_underscores=not plain,
        escape_misc=False,
    ).strip()


def _first_node(block: Tag):
    for child in block.contents:
        if isinstance(child, NavigableString) and not child.strip():
            continue
        return child
    return None


def _starts_bold(block: Tag) -> bool:
    first = _first_node(block)
    return isinstance(first, Tag) and first.name in BOLD_TAGS


def _is_continuation(block: Tag) -> bool:
    return block.name in CONTINUATION_TAGS and bool(block.contents) and not _starts_bold(block)


def _take_headings(blocks: List[Tag], story: UserStory) -> List[Tag]:
    remaining = []
    for block in blocks:
        if block.name in HEADING_TAGS:
            line = _to_markdown(block.contents, plain=True).replace("&#x20;", "").strip()
            depth = int(block.name[1])
            if depth == 1:
                story.body["sub_title"] = line
                continue
            if not story.tag_line and depth in (3, 4):
                story.tag_line = strip_stars(line)
                continue
            lowered = line.lower()
            if not story.submitted_by and SUBMITTED_BY in lowered:
                submitter = strip_stars(line)
                start = submitter.lower().index(SUBMITTED_BY) + len(SUBMITTED_BY)
                story.submitted_by = submitter[start:].strip()
                continue
        remaining.append(block)
    return remaining


def _split_values(line: str) -> List[str]:
    separator = ";" if ";" in line else ","
    return [value.strip() for value in line.split(separator) if value.strip()]


def _store(story: UserStory, label: str, line: str) -> None:
    spec = FIELDS[label]
    target = story.metadata if spec.section == METADATA else story.body
    key = field_key(label)

    if spec.type == SINGULAR:
        existing = target.get(key)
        if existing and existing.strip() == line.strip():
            return
        target[key] = f"{existing}\n{line}" if existing else line
        return

    values = target.setdefault(key, [])
    for value in _split_values(line):
        if value not in values:
            values.append(value)


def extract_fields(md: str, story: UserStory) -> str:
    """
    Move headings and labelled paragraphs of ``md`` into ``story``.

    Returns the Markdown of the blocks that were left unclaimed.
    """
    soup = BeautifulSoup(markdown_lib.markdown(md), "html.parser")
    blocks = [child for child in soup.children if isinstance(child, Tag)]
    blocks = _take_headings(blocks, story)

    consumed = set()
    last_label = ""
    i = 0
    while i < len(blocks):
        block = blocks[i]
        if block.name != "p" or not _starts_bold(block):
            i += 1
            continue

        bold = _first_node(block)
        label = bold.get_text().strip().rstrip(":").strip() or last_label
        label = FIELD_ALIASES.get(label, label)
        rest = block.contents[block.contents.index(bold) + 1:]
        line = _to_markdown(rest, plain=True).lstrip(":")

        if label not in FIELDS:
            if not last_label:
                i += 1
                continue
            # bold text without a known label: part of the previous field
            label = last_label
            line = _to_markdown(block.contents, plain=True)
        last_label = label

        while i + 1 < len(blocks) and _is_continuation(blocks[i + 1]):
            line = f"{line.strip()}\n\n{_to_markdown([blocks[i + 1]], plain=True)}"
            consumed.add(id(blocks[i + 1]))
            i += 1

        line = strip_stars(line.strip().replace("&#x20;", " ")).strip()
        _store(story, label, line)
        consumed.add(id(block))
        i += 1

    leftover = [block for block in blocks if id(block) not in consumed]
    return "\n\n".join(_to_markdown([block]) for block in leftover).strip()


def iter_labels(md: str):
    """Yield the bold label opening each paragraph of ``md``, aliases resolved."""
    soup = BeautifulSoup(markdown_lib.markdown(normalize_labels(md)), "html.parser")
    for block in soup.find_all("p", recursive=False):
        if _starts_bold(block):
            label = _first_node(block).get_text().strip().rstrip(":").strip()
            if label:
                yield FIELD_ALIASES.get(label, label)
