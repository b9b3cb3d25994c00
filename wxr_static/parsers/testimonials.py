"""
Testimonial quotes mined from Elementor page-builder data.

Stories built with Elementor carry a testimonial widget whose content is
also rendered into the post body.  :func:`extract_testimonial` reads the
widget, removes its rendering from the Markdown and returns the quote plus
the download of the quoted person's picture.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from wxr_static.models import Download, Quote
from wxr_static.utils.text import clean_string, escape_regexp, find_nested

QUOTE_IMAGE = "quote.png"


def _settings(node: Any) -> Dict[str, Any]:
    if not isinstance(node, dict):
        return {}
    settings = node.get("settings")
    return settings if isinstance(settings, dict) else {}


def find_testimonial(elementor_data: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the ``settings`` of the first testimonial widget, if any.

    :raises ValueError: if ``elementor_data`` is not a JSON list or object.
    """
    if not elementor_data:
        return None
    if not isinstance(elementor_data, str):
        raise ValueError(f"unexpected Elementor data: {type(elementor_data).__name__}")
    try:
        layout = json.loads(elementor_data)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid Elementor data: {e}") from e
    if isinstance(layout, dict):
        layout = [layout]
    if not isinstance(layout, list):
        raise ValueError(f"unexpected Elementor data: {type(layout).__name__}")
    node = find_nested(layout, lambda item: _settings(item).get("testimonial_content"))
    return _settings(node) if node else None


def clean_testimonial_content(content: str) -> str:
    text = clean_string(content.strip())
    text = re.sub(r"^<b>(.*)</b>$", r"\1", text, count=1, flags=re.MULTILINE)
    text = text.replace("<b>", "*").replace("</b>", "*")
    text = re.sub(r"^\*\*", "", text, count=1, flags=re.MULTILINE)
    text = re.sub(r"\*\*$", "", text, count=1, flags=re.MULTILINE)
    return text.strip()


def _quote_pattern(content: str, image_url: str, name: str, job: str) -> re.Pattern:
    parts: List[str] = [r"\**" + escape_regexp(content) + r"\**"]
    if image_url:
        parts.append(r"!\[(.*?)\]\(" + escape_regexp(image_url + ")"))
    if name:
        parts.append(escape_regexp(name))
    if job:
        parts.append(escape_regexp(job))
    return re.compile(r"\s*".join(parts), re.MULTILINE)


def extract_testimonial(md: str, elementor_data: Optional[str]) -> Tuple[str, Optional[Quote], Optional[Download]]:
    """
    Pull the Elementor testimonial out of ``md``.

    Returns the Markdown without the rendered quote, the :class:`Quote` and
    the :class:`Download` of the testimonial picture (``None`` when the post
    has no testimonial or no picture).
    """
    settings = find_testimonial(elementor_data)
    if not settings:
        return md, None, None

    content = clean_testimonial_content(str(settings["testimonial_content"]))
    image = settings.get("testimonial_image")
    image_url = (image.get("url") or "").strip() if isinstance(image, dict) else ""
    name = str(settings.get("testimonial_name") or "").strip()
    job = str(settings.get("testimonial_job") or "").strip()

    md = _quote_pattern(content, image_url, name, job).sub("", md, count=1)

    quote = Quote(
        **{"from": name},
        content=re.sub(r'^"(.*)"$', r"\1", content, count=1, flags=re.MULTILINE),
        image=f"./{QUOTE_IMAGE}" if image_url else None,
    )
    download = Download(src=image_url, dest=QUOTE_IMAGE) if image_url else None
    return md, quote, download
