"""
Generation 1: one ``.adoc`` page per blog post.

Reads the JSON dump written by the ``convert`` step (items carrying an
``adoc`` body) and writes ``<content_dir>/<post_name>.adoc`` with a YAML
front matter block.  Attachments and images referenced by ``image:`` macros
are downloaded into the images directory and the macros are rewritten to
the site-relative path.
"""

from __future__ import annotations

import os
import re
from typing import Any, Callable, Dict, List

import yaml
from pydantic import ValidationError

from wxr_static.extractors.wxr_extractor import primary_category
from wxr_static.migrators.downloads import DownloadError, download_to_file, url_basename
from wxr_static.models import SimplePage
from wxr_static.utils.errors import report_error, report_ok
from wxr_static.utils.text import meta_text, to_iso_date

# handled manually on the new site, or not content at all
SKIPPED_POST_TYPES = ("page", "nav_menu_item", "elementor_library")

IMAGE_MACRO_RE = re.compile(
    r"image:https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Zá0-9()]{1,6}\b([-a-záA-Z0-9()@:%_+.~#?&/=]*)"
)

LogFn = Callable[..., None]
Downloader = Callable[..., str]


def is_template(item: Dict[str, Any]) -> bool:
    return (item.get("title") or "").lower().endswith(" template")


def story_key(link: str, story_url: str) -> str:
    """``https://site/user-story/foo/`` -> ``foo``."""
    return link.strip().replace(story_url, "").rstrip("/")


def render_page(page: SimplePage, adoc: str) -> str:
    front_matter = yaml.safe_dump(page.to_front_matter(), sort_keys=False, allow_unicode=True)
    return f"---\n{front_matter}---\n{adoc}"


def rewrite_images(adoc: str, images_dir: str, url_prefix: str, *, download: Callable[[str, str], str]) -> str:
    """Download every ``image:URL`` target and point the macro at the local copy."""
    macros = []
    for match in IMAGE_MACRO_RE.finditer(adoc):
        if match.group(0) not in macros:
            macros.append(match.group(0))
    for macro in macros:
        url = macro[len("image:"):]
        filename = download(url, os.path.join(images_dir, url_basename(url)))
        adoc = adoc.replace(macro, f"image:{url_prefix.rstrip('/')}/{os.path.basename(filename)}")
    return adoc


def generate_adoc_site(
    data: Dict[str, List[Dict[str, Any]]],
    cfg: Dict[str, Any],
    *,
    log: LogFn,
    downloader: Downloader = download_to_file,
) -> List[str]:
    """
    Write the generation 1 pages.

    :param data: The ``convert`` dump (``{"item": [...], ...}``).
    :param cfg: The full tool configuration (``adoc``, ``site``, ``migration``).
    :param log: ``log(message, level)`` callable.
    :param downloader: Replacement for :func:`download_to_file` (tests).
    :return: Paths of the pages written.
    """
    adoc_cfg = cfg["adoc"]
    dry_run = cfg["migration"]["dry_run"]
    timeout = cfg["migration"]["download_timeout"]
    story_url = cfg["site"]["base_url"].rstrip("/") + cfg["site"]["story_prefix"]
    images_dir = adoc_cfg["images_dir"]

    def download(url: str, filename: str) -> str:
        if dry_run:
            log(f"Dry-run: would download {url} to {filename}", "DEBUG")
            return filename
        return downloader(url, filename, timeout=timeout)

    pages: Dict[str, Dict[str, Any]] = {}
    for item in data.get("item", []):
        post_type = item.get("post_type")
        if post_type in SKIPPED_POST_TYPES:
            continue

        if post_type == "attachment":
            url = item.get("attachment_url") or ""
            if not url:
                continue
            try:
                download(url, os.path.join(images_dir, url_basename(url)))
            except DownloadError as e:
                report_error("IMAGE_DOWNLOAD", item, e)
            continue

        if post_type != "post":
            log(f"{item.get('post_id')} {item.get('post_name')} {post_type}", "DEBUG")
            continue

        if is_template(item):
            continue

        frontmatter = item.get("frontmatter") or {}
        if primary_category(item) == "map":
            link = frontmatter.get("story link")
            if not link:
                continue
            pages.setdefault(story_key(meta_text(link), story_url), {}).update(
                location=meta_text(frontmatter.get("location")) or None,
                industry=meta_text(frontmatter.get("industry")) or None,
                name=meta_text(frontmatter.get("name")),
                latitude=meta_text(frontmatter.get("_wpgmp_metabox_latitude")) or None,
                longitude=meta_text(frontmatter.get("_wpgmp_metabox_longitude")) or None,
            )
            continue

        adoc = item.get("adoc")
        if not adoc:
            continue
        key = (item.get("post_name") or "").strip()
        if not key:
            log(f"Skipping post #{item.get('post_id')} '{item.get('title')}' as it has no post_name", "WARNING")
            report_error("MISSING_POST_NAME", item)
            continue
        try:
            adoc = rewrite_images(adoc, images_dir, adoc_cfg["images_url_prefix"], download=download)
            date = to_iso_date(item.get("pubDate") or "")
        except (DownloadError, ValueError, TypeError) as e:
            report_error("IMAGE_DOWNLOAD" if isinstance(e, DownloadError) else "CONVERSION_FAILED", item, e)
            continue

        pages.setdefault(key, {}).update(
            adoc=adoc,
            title=item.get("title") or "",
            date=date,
            post_name=key,
        )

    written: List[str] = []
    for key, fields in pages.items():
        adoc = fields.pop("adoc", None)
        if not adoc:
            continue
        try:
            page = SimplePage(**fields)
        except ValidationError as e:
            report_error("CONVERSION_FAILED", {"post_name": key, **fields}, e)
            continue
        path = os.path.join(adoc_cfg["content_dir"], page.post_name + ".adoc")
        if dry_run:
            log(f"Dry-run: would write {path}")
            continue
        os.makedirs(adoc_cfg["content_dir"], exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_page(page, adoc))
        report_ok("ADOC_WRITTEN", fields, {"path": path})
        written.append(path)
    return written
