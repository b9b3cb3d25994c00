"""JSON Lines reports of per-post failures and successes under ``reports/migration``."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "CONVERSION_FAILED": "Failed to convert the post body",
    "IMAGE_DOWNLOAD": "Failed to download image",
    "TESTIMONIAL_PARSE": "Could not read the Elementor testimonial",
    "MISSING_BODY": "Post has no converted body",
    "MISSING_POST_NAME": "Post has no post_name to write it under",
    "UNCONSUMED_CONTENT": "Story body has content no field claimed",
    "ADOC_WRITTEN": "AsciiDoc page written",
    "STORY_WRITTEN": "User story written",
}

REPORT_DIR = os.path.join("reports", "migration")
ERROR_LOG = "errors.jsonl"
OK_LOG = "success.jsonl"


def _write_jsonl(name: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``REPORT_DIR/name``."""
    os.makedirs(REPORT_DIR, exist_ok=True)
    with open(os.path.join(REPORT_DIR, name), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def _entry(code: str, post: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "post_id": post.get("post_id"),
        "post_name": post.get("post_name"),
        "title": post.get("title"),
    }


def report_error(code: str, post: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Append an ``errors.jsonl`` entry for ``post``; ``exc`` is stored as ``error``."""
    entry = _entry(code, post)
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {entry['message']} - [#{post.get('post_id', '')} - {post.get('post_name', '')}]")
    _write_jsonl(ERROR_LOG, entry)


def report_ok(code: str, post: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Append an ``success.jsonl`` entry for ``post`` merged with ``extra``."""
    entry = _entry(code, post)
    if extra:
        entry.update(extra)
    print(f"[OK] {entry['message']} - {post.get('post_name', '')}")
    _write_jsonl(OK_LOG, entry)
