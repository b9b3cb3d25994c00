import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json

import pytest
yaml = pytest.importorskip("yaml")
pytest.importorskip("bs4")
pytest.importorskip("markdown")
pytest.importorskip("phpserialize")

from wxr_static.extractors.wxr_extractor import unserialize_meta
from wxr_static.migration_tool import MigrationTool
from wxr_static.migrators.downloads import DownloadError
from wxr_static.migrators.user_stories import (
    build_user_story,
    generate_user_stories,
    is_case_study,
    map_location,
    map_story_key,
)
from wxr_static.utils.fixups import Fixup

UPLOADS = "https://jenkinsistheway.io/wp-content/uploads/2021/09/"
STORY_URL = "https://jenkinsistheway.io/user-story/"

STORY_MD = "\n\n".join(
    [
        "### Jenkins is the way to space",
        "## Submitted By Jenkins User Jane Doe",
        f"![rocket]({UPLOADS}rocket.png)",
        "**Organization:** Space Corp",
        "**Industry:** Aerospace",
        "**Programming Language:** Java, Python",
        "**Background:** We build rockets.",
        "**Goals:** Faster builds.",
    ]
)


def story_item(post_name="to-space", md=STORY_MD, **extra):
    item = {
        "post_type": "post",
        "post_id": "42",
        "post_name": post_name,
        "title": "Jenkins is the way to space",
        "pubDate": "Thu, 04 Mar 2021 15:00:00 +0000",
        "category": {"_": "User Story", "domain": "category", "nicename": "user-story"},
        "frontmatter": {},
        "md": md,
    }
    item.update(extra)
    return item


def map_item(link):
    return {
        "post_type": "post",
        "post_id": "11",
        "post_name": "berlin-pin",
        "title": "Berlin",
        "category": {"_": "map", "domain": "category", "nicename": "map"},
        "frontmatter": {
            "story link": link,
            "location": "Berlin",
            "industry": " Aerospace ",
            "name": " Space Corp ",
            "_wpgmp_metabox_latitude": "52.52",
            "_wpgmp_metabox_longitude": "13.40",
        },
    }


def make_config(tmp_path, **migration):
    tool = MigrationTool(
        {
            "markdown": {
                "content_dir": str(tmp_path / "stories"),
                "images_dir": str(tmp_path / "images"),
                "static_images": [UPLOADS + "pin.png"],
            },
            "migration": migration,
        }
    )
    return tool.config


class FakeDownloader:
    def __init__(self, fail=()):
        self.calls = []
        self.fail = fail

    def __call__(self, url, filename, timeout=None):
        self.calls.append((url, filename))
        if url in self.fail:
            raise DownloadError(f"unable to fetch {url}")
        return filename


def read_events(report_dir, name):
    path = report_dir / name
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_is_case_study():
    assert is_case_study({"category": {"_": "Case Studies"}, "title": "x"})
    assert is_case_study({"title": "Jenkins Case Study: Acme"})
    assert not is_case_study(story_item())


def test_map_story_key():
    rewrites = {STORY_URL + "to-focus-on-your-code/": STORY_URL + "jenkins-is-the-way-to-focus-on-your-code/"}
    assert map_story_key(STORY_URL + "to-space/", STORY_URL, rewrites) == "to-space"
    assert map_story_key(STORY_URL + "to-focus-on-your-code/", STORY_URL, rewrites) == "jenkins-is-the-way-to-focus-on-your-code"
    assert map_story_key("https://example.com/elsewhere/", STORY_URL, rewrites) is None


def test_build_user_story():
    story, leftover = build_user_story(story_item())
    assert leftover == ""
    assert story.post_name == "to-space"
    assert story.date == "2021-03-04T15:00:00.000Z"
    assert story.tag_line == "Jenkins is the way to space"
    assert story.submitted_by == "Jane Doe"
    assert story.image == "rocket.png"
    assert [d.dest for d in story.downloads] == ["rocket.png"]
    assert story.metadata["programming_languages"] == ["Java", "Python"]
    assert story.body["goals"] == "Faster builds."


def test_build_user_story_applies_fixups():
    md = STORY_MD.replace("**Industry:** Aerospace", "**Industry: Aero**space")
    fixups = [Fixup(find="**Industry: Aero**space", replace="**Industry:** Aerospace", post_name="to-space")]
    story, leftover = build_user_story(story_item(md=md), fixups=fixups)
    assert leftover == ""
    assert story.metadata["industries"] == ["Aerospace"]


def test_build_user_story_with_bad_testimonial_data(report_dir):
    logs = []
    item = story_item(frontmatter={"_elementor_data": "{broken"})
    story, leftover = build_user_story(item, log=lambda m, level="INFO": logs.append(level))
    assert story.quotes is None
    assert logs == ["WARNING"]
    assert [e["code"] for e in read_events(report_dir, "errors.jsonl")] == ["TESTIMONIAL_PARSE"]


def test_generate_user_stories(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    download = FakeDownloader()
    items = [
        map_item(STORY_URL + "to-space/"),
        map_item("https://example.com/not-a-story/"),
        story_item(),
        story_item(post_name="story-template", title="Story Template"),
        story_item(post_name="case", title="Jenkins Case Study: Acme"),
        story_item(post_name="no-body", md=""),
        story_item(post_name="unclaimed", md="A stray paragraph.\n\n**Organization:** Acme"),
        {"post_type": "page", "post_name": "about", "md": "About"},
    ]
    written = generate_user_stories(items, cfg, log=lambda *a: None, downloader=download)

    story_dir = tmp_path / "stories" / "to-space"
    assert written == [str(story_dir / "index.yaml")]
    text = (story_dir / "index.yaml").read_text(encoding="utf-8")
    assert text.startswith("---\n")
    data = yaml.safe_load(text)
    assert data["map"] == {
        "location": "Berlin",
        "industries": ["Aerospace"],
        "name": "Space Corp",
        "latitude": "52.52",
        "longitude": "13.40",
    }
    assert data["metadata"] == {
        "organization": "Space Corp",
        "industries": ["Aerospace"],
        "programming_languages": ["Java", "Python"],
    }
    assert data["body"] == {"background": "We build rockets.", "goals": "Faster builds."}
    assert data["image"] == "rocket.png"
    assert data["tag_line"] == "Jenkins is the way to space"
    assert data["submitted_by"] == "Jane Doe"
    assert "downloads" not in data
    assert "quotes" not in data

    assert download.calls == [
        (UPLOADS + "pin.png", os.path.join(str(tmp_path / "images"), "pin.png")),
        (UPLOADS + "rocket.png", os.path.join(str(story_dir), "rocket.png")),
    ]
    assert not (tmp_path / "stories" / "unclaimed").exists()
    assert not (tmp_path / "stories" / "case").exists()

    codes = [e["code"] for e in read_events(report_dir, "errors.jsonl")]
    assert codes == ["MISSING_BODY", "UNCONSUMED_CONTENT"]
    assert [e["code"] for e in read_events(report_dir, "success.jsonl")] == ["STORY_WRITTEN"]


def test_failed_download_skips_story(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    download = FakeDownloader(fail={UPLOADS + "rocket.png"})
    written = generate_user_stories([story_item()], cfg, log=lambda *a: None, downloader=download)
    assert written == []
    assert not (tmp_path / "stories" / "to-space" / "index.yaml").exists()
    assert [e["code"] for e in read_events(report_dir, "errors.jsonl")] == ["IMAGE_DOWNLOAD"]


def test_limit_and_dry_run(tmp_path, report_dir):
    cfg = make_config(tmp_path, dry_run=True, limit=1)
    download = FakeDownloader()
    items = [story_item(), story_item(post_name="no-body", md="")]
    written = generate_user_stories(items, cfg, log=lambda *a: None, downloader=download)
    assert written == []
    assert download.calls == []
    assert read_events(report_dir, "errors.jsonl") == []
    assert not (tmp_path / "stories").exists()


def test_map_location_from_serialized_meta():
    item = map_item(STORY_URL + "to-space/")
    item["frontmatter"]["industry"] = unserialize_meta('a:3:{i:0;s:7:"Finance";i:1;s:1:" ";i:2;s:8:"Banking ";}')
    item["frontmatter"]["name"] = unserialize_meta('a:1:{s:2:"en";s:10:"Space Corp";}')
    location = map_location(item)
    assert location.industries == ["Finance", "Banking"]
    assert location.name == "Space Corp"
    assert location.location == "Berlin"


def test_generate_with_serialized_map_and_nameless_post(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    pin = map_item(STORY_URL + "to-space/")
    pin["frontmatter"]["industry"] = unserialize_meta('a:1:{i:0;s:7:"Finance";}')
    items = [pin, story_item(post_name=""), story_item()]
    written = generate_user_stories(items, cfg, log=lambda *a: None, downloader=FakeDownloader())

    story_dir = tmp_path / "stories" / "to-space"
    assert written == [str(story_dir / "index.yaml")]
    data = yaml.safe_load((story_dir / "index.yaml").read_text(encoding="utf-8"))
    assert data["map"]["industries"] == ["Finance"]
    assert [e["code"] for e in read_events(report_dir, "errors.jsonl")] == ["MISSING_POST_NAME"]
