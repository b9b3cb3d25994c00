"""
Generation 2: one ``<post_name>/index.yaml`` user story per blog post.

The story YAML is assembled from the post's Markdown: the Elementor
testimonial becomes ``quotes``, images are downloaded next to the story,
headings fill ``tag_line``/``submitted_by``/``body.sub_title`` and every
labelled paragraph is moved into ``metadata`` or ``body``.  ``map`` posts
(pins on the community map) are attached to the story they link to.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from wxr_static.extractors.wxr_extractor import primary_category
from wxr_static.migrators.asciidoc_site import is_template, story_key
from wxr_static.migrators.downloads import DownloadError, download_to_file, normalize_filename, url_basename
from wxr_static.models import Download, MapLocation, UserStory
from wxr_static.parsers.story_fields import extract_fields, extract_images, normalize_labels
from wxr_static.parsers.testimonials import extract_testimonial
from wxr_static.utils.errors import report_error, report_ok
from wxr_static.utils.fixups import Fixup, apply_fixups
from wxr_static.utils.text import clean_string, meta_list, meta_text, to_iso_date

CASE_STUDY_CATEGORY = "Case Studies"
CASE_STUDY_TITLE = "Jenkins Case Study:"
MAP_CATEGORY = "map"

LogFn = Callable[..., None]
Downloader = Callable[..., str]


def is_case_study(item: Dict[str, Any]) -> bool:
    return primary_category(item) == CASE_STUDY_CATEGORY or CASE_STUDY_TITLE in (item.get("title") or "")


def map_location(item: Dict[str, Any]) -> MapLocation:
    frontmatter = item.get("frontmatter") or {}
    return MapLocation(
        location=meta_text(frontmatter.get("location")) or None,
        industries=meta_list(frontmatter.get("industry")),
        name=meta_text(frontmatter.get("name")),
        latitude=meta_text(frontmatter.get("_wpgmp_metabox_latitude")) or None,
        longitude=meta_text(frontmatter.get("_wpgmp_metabox_longitude")) or None,
    )


def map_story_key(link: str, story_url: str, rewrites: Dict[str, str]) -> Optional[str]:
    """Story key a map pin points at, or ``None`` when it links outside the site."""
    link = link.strip()
    for old, new in rewrites.items():
        link = link.replace(old, new)
    key = story_key(link, story_url)
    if "://" in key:
        return None
    return key


def build_user_story(
    item: Dict[str, Any],
    *,
    location: Optional[MapLocation] = None,
    fixups: Optional[List[Fixup]] = None,
    log: Optional[LogFn] = None,
) -> Tuple[UserStory, str]:
    """
    Turn a converted post into a :class:`UserStory`.

    :return: The story and the Markdown no field claimed (empty when the
        whole body was understood).
    :raises ValueError: if the post's date cannot be parsed.
    """
    post_name = (item.get("post_name") or "").strip()
    story = UserStory(
        map=location,
        title=item.get("title") or "",
        date=to_iso_date(item.get("pubDate") or ""),
        post_name=post_name,
    )
    md = clean_string(item.get("md") or "")

    elementor_data = (item.get("frontmatter") or {}).get("_elementor_data")
    try:
        md, quote, quote_image = extract_testimonial(md, elementor_data)
    except ValueError as e:
        if log:
            log(f"Ignoring testimonial of '{post_name}': {e}", "WARNING")
        report_error("TESTIMONIAL_PARSE", item, e)
        quote, quote_image = None, None
    if quote:
        story.quotes = [quote]
    if quote_image:
        story.downloads.append(quote_image)

    md = normalize_labels(md)
    md, image_urls = extract_images(md)
    for url in image_urls:
        story.image = normalize_filename(url_basename(url))
        story.downloads.append(Download(src=url, dest=story.image))

    md = apply_fixups(md, post_name, fixups or [])
    leftover = extract_fields(md, story)
    return story, leftover


def render_story(story: UserStory) -> str:
    return "---\n" + yaml.safe_dump(story.to_front_matter(), sort_keys=False, allow_unicode=True)


def generate_user_stories(
    items: List[Dict[str, Any]],
    cfg: Dict[str, Any],
    *,
    log: LogFn,
    fixups: Optional[List[Fixup]] = None,
    downloader: Downloader = download_to_file,
) -> List[str]:
    """
    Write the generation 2 stories.

    :param items: The ``convert-md`` dump (items carrying ``md``).
    :param cfg: The full tool configuration (``markdown``, ``site``, ``migration``).
    :param log: ``log(message, level)`` callable.
    :param fixups: Per-post substitutions applied before field extraction.
    :param downloader: Replacement for :func:`download_to_file` (tests).
    :return: Paths of the ``index.yaml`` files written.
    """
    md_cfg = cfg["markdown"]
    site = cfg["site"]
    dry_run = cfg["migration"]["dry_run"]
    timeout = cfg["migration"]["download_timeout"]
    limit = cfg["migration"]["limit"]
    content_dir = md_cfg["content_dir"]
    story_url = site["base_url"].rstrip("/") + site["story_prefix"]

    def download(url: str, filename: str) -> str:
        if dry_run:
            log(f"Dry-run: would download {url} to {filename}", "DEBUG")
            return filename
        return downloader(url, filename, timeout=timeout)

    for url in md_cfg["static_images"]:
        try:
            download(url, os.path.join(md_cfg["images_dir"], url_basename(url)))
        except DownloadError as e:
            log(f"Failed to download static image {url}: {e}", "ERROR")

    posts = [item for item in items if item.get("post_type") == "post" and not is_template(item)]
    case_studies = [item for item in posts if is_case_study(item)]
    case_study_ids = {id(item) for item in case_studies}
    maps = [item for item in posts if primary_category(item) == MAP_CATEGORY and id(item) not in case_study_ids]
    map_ids = {id(item) for item in maps}

    for item in case_studies:
        log(f"Skipping case study {item.get('post_name')}")

    locations: Dict[str, MapLocation] = {}
    for item in maps:
        link = (item.get("frontmatter") or {}).get("story link")
        if not link:
            log(f"Skipping map {item.get('post_name')} as it has no story link")
            continue
        key = map_story_key(meta_text(link), story_url, site["story_link_rewrites"])
        if key is None:
            log(f"Skipping map {item.get('post_name')} linking outside the site: {meta_text(link)}")
            continue
        locations[key] = map_location(item)

    written: List[str] = []
    stories = [item for item in posts if id(item) not in map_ids and id(item) not in case_study_ids]
    for count, item in enumerate(stories):
        if limit is not None and count >= limit:
            break
        post_name = (item.get("post_name") or "").strip()
        if not item.get("md"):
            log(f"No body for {post_name or item.get('title')}", "WARNING")
            report_error("MISSING_BODY", item)
            continue
        if not post_name:
            log(f"Skipping post #{item.get('post_id')} '{item.get('title')}' as it has no post_name", "WARNING")
            report_error("MISSING_POST_NAME", item)
            continue

        try:
            story, leftover = build_user_story(
                item, location=locations.get(post_name), fixups=fixups, log=log,
            )
        except ValueError as e:
            report_error("CONVERSION_FAILED", item, e)
            continue

        if leftover:
            log(f"Story '{post_name}' has unclaimed content:\n{leftover}", "ERROR")
            report_error("UNCONSUMED_CONTENT", item)
            continue

        story_dir = os.path.join(content_dir, story.post_name)
        try:
            for asset in story.downloads:
                download(asset.src, os.path.join(story_dir, asset.dest))
        except DownloadError as e:
            report_error("IMAGE_DOWNLOAD", item, e)
            continue

        path = os.path.join(story_dir, "index.yaml")
        if dry_run:
            log(f"Dry-run: would write {path}")
            continue
        os.makedirs(story_dir, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_story(story))
        report_ok("STORY_WRITTEN", item, {"path": path})
        written.append(path)
    return written
