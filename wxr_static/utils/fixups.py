"""
Per-post text substitutions loaded from a YAML file.

Some historical posts were malformed in ways no generic rule covers (a
label run together with its value, a byline written as a plain paragraph).
Those one-off repairs live in a data file rather than in code; each entry
looks like::

    - post_name: to-modernize-healthcare
      find: "**Programming Language: Java,** Node.js"
      replace: "**Programming Language:** Java, Node.js"

``regex: true`` treats ``find`` as a multiline regular expression and
``dedent: true`` strips the indentation of ``replace`` (handy for YAML block
scalars).  Only the first occurrence is replaced.
"""

from __future__ import annotations

import os
import re
from typing import List, Optional

import yaml
from pydantic import BaseModel, ValidationError

from wxr_static.utils.text import dont_indent


class Fixup(BaseModel):
    find: str
    replace: str = ""
    regex: bool = False
    dedent: bool = False
    post_name: Optional[str] = None

    def applies_to(self, post_name: str) -> bool:
        return self.post_name is None or self.post_name == post_name

    def apply(self, text: str) -> str:
        replacement = dont_indent(self.replace) if self.dedent else self.replace
        if self.regex:
            return re.sub(self.find, lambda _m: replacement, text, count=1, flags=re.MULTILINE)
        return text.replace(self.find, replacement, 1)


def load_fixups(path: Optional[str]) -> List[Fixup]:
    """Read the fixups file; a missing or empty path yields no fixups.

    :raises ValueError: if the file is not a list of fixup entries.
    """
    if not path or not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or []
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of fixups")
    try:
        return [Fixup(**entry) for entry in raw]
    except (TypeError, ValidationError) as e:
        raise ValueError(f"{path}: invalid fixup entry: {e}") from e


def apply_fixups(text: str, post_name: str, fixups: List[Fixup]) -> str:
    for fixup in fixups:
        if fixup.applies_to(post_name):
            text = fixup.apply(text)
    return text
