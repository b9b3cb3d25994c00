import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json

import pytest
yaml = pytest.importorskip("yaml")

from wxr_static.migration_tool import MigrationTool
from wxr_static.migrators.asciidoc_site import generate_adoc_site, rewrite_images, story_key
from wxr_static.migrators.downloads import DownloadError

UPLOADS = "https://jenkinsistheway.io/wp-content/uploads/2021/09/"


def make_config(tmp_path, **migration):
    tool = MigrationTool(
        {
            "adoc": {
                "content_dir": str(tmp_path / "content"),
                "images_dir": str(tmp_path / "images"),
            },
            "migration": migration,
        }
    )
    return tool.config


def make_data():
    return {
        "item": [
            {"post_type": "page", "post_name": "about", "adoc": "About"},
            {"post_type": "nav_menu_item", "post_name": "menu"},
            {"post_type": "attachment", "post_id": "9", "post_name": "logo", "attachment_url": UPLOADS + "logo.png"},
            {"post_type": "revision", "post_id": "10", "post_name": "rev"},
            {
                "post_type": "post",
                "post_name": "story-template",
                "title": "Story Template",
                "adoc": "Template body",
            },
            {
                "post_type": "post",
                "post_id": "11",
                "post_name": "berlin-pin",
                "title": "Berlin",
                "category": {"_": "map", "domain": "category", "nicename": "map"},
                "frontmatter": {
                    "story link": "https://jenkinsistheway.io/user-story/to-space/ ",
                    "location": "Berlin",
                    "industry": "Aerospace",
                    "name": " Space Corp ",
                    "_wpgmp_metabox_latitude": "52.52",
                    "_wpgmp_metabox_longitude": "13.40",
                },
            },
            {
                "post_type": "post",
                "post_id": "42",
                "post_name": "to-space",
                "title": "Jenkins is the way to space",
                "pubDate": "Thu, 04 Mar 2021 15:00:00 +0000",
                "adoc": f"== Rockets\n\nimage:{UPLOADS}rocket.png[Rocket]\n\nimage:{UPLOADS}rocket.png[Again]\n",
            },
            {"post_type": "post", "post_id": "43", "post_name": "no-body", "title": "No body"},
        ]
    }


class FakeDownloader:
    def __init__(self, fail=()):
        self.calls = []
        self.fail = fail

    def __call__(self, url, filename, timeout=None):
        self.calls.append((url, filename, timeout))
        if url in self.fail:
            raise DownloadError(f"unable to fetch {url}")
        return filename


def test_story_key():
    assert story_key(" https://jenkinsistheway.io/user-story/to-space/ ", "https://jenkinsistheway.io/user-story/") == "to-space"


def test_rewrite_images_downloads_each_url_once(tmp_path):
    download = FakeDownloader()
    adoc = f"image:{UPLOADS}a.png[A] and image:{UPLOADS}a.png[B]"
    result = rewrite_images(adoc, str(tmp_path), "/images/jenkinsistheway/", download=lambda u, f: download(u, f))
    assert result == "image:/images/jenkinsistheway/a.png[A] and image:/images/jenkinsistheway/a.png[B]"
    assert len(download.calls) == 1


def test_generate_writes_pages(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    download = FakeDownloader()
    logs = []
    written = generate_adoc_site(make_data(), cfg, log=lambda m, level="INFO": logs.append((level, m)), downloader=download)

    page_path = tmp_path / "content" / "to-space.adoc"
    assert written == [str(page_path)]
    text = page_path.read_text(encoding="utf-8")
    assert text.startswith("---\n")
    front_matter, _, body = text[4:].partition("---\n")
    meta = yaml.safe_load(front_matter)
    assert meta["layout"] == "simplepage"
    assert meta["title"] == "Jenkins is the way to space"
    assert meta["date"] == "2021-03-04T15:00:00.000Z"
    assert meta["post_name"] == "to-space"
    assert meta["location"] == "Berlin"
    assert meta["industry"] == "Aerospace"
    assert meta["name"] == "Space Corp"
    assert meta["latitude"] == "52.52"
    assert body == "== Rockets\n\nimage:/images/jenkinsistheway/rocket.png[Rocket]\n\nimage:/images/jenkinsistheway/rocket.png[Again]\n"

    urls = [call[0] for call in download.calls]
    assert urls == [UPLOADS + "logo.png", UPLOADS + "rocket.png"]
    assert download.calls[0][1] == os.path.join(str(tmp_path / "images"), "logo.png")
    assert download.calls[0][2] == 30
    assert ("DEBUG", "10 rev revision") in logs
    assert not (tmp_path / "content" / "story-template.adoc").exists()
    assert not (tmp_path / "content" / "about.adoc").exists()

    entries = [json.loads(line) for line in (report_dir / "success.jsonl").read_text(encoding="utf-8").splitlines()]
    assert [e["code"] for e in entries] == ["ADOC_WRITTEN"]
    assert entries[0]["post_name"] == "to-space"


def test_failed_image_skips_page(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    download = FakeDownloader(fail={UPLOADS + "rocket.png", UPLOADS + "logo.png"})
    written = generate_adoc_site(make_data(), cfg, log=lambda *a: None, downloader=download)
    assert written == []
    codes = [json.loads(line)["code"] for line in (report_dir / "errors.jsonl").read_text(encoding="utf-8").splitlines()]
    assert codes == ["IMAGE_DOWNLOAD", "IMAGE_DOWNLOAD"]


def test_dry_run_writes_nothing(tmp_path, report_dir):
    cfg = make_config(tmp_path, dry_run=True)
    download = FakeDownloader()
    written = generate_adoc_site(make_data(), cfg, log=lambda *a: None, downloader=download)
    assert written == []
    assert download.calls == []
    assert not (tmp_path / "content").exists()


def test_bad_posts_do_not_stop_the_run(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    data = make_data()
    data["item"] += [
        {"post_type": "post", "post_id": "44", "post_name": "", "title": "Draft", "adoc": "Draft body"},
        {"post_type": "post", "post_id": "45", "post_name": "numbered", "title": 45, "adoc": "Body"},
    ]
    logs = []
    written = generate_adoc_site(data, cfg, log=lambda m, level="INFO": logs.append(level), downloader=FakeDownloader())

    assert written == [str(tmp_path / "content" / "to-space.adoc")]
    assert not (tmp_path / "content" / "numbered.adoc").exists()
    assert "WARNING" in logs
    entries = [json.loads(line) for line in (report_dir / "errors.jsonl").read_text(encoding="utf-8").splitlines()]
    assert [(e["code"], e["post_name"]) for e in entries] == [
        ("MISSING_POST_NAME", ""),
        ("CONVERSION_FAILED", "numbered"),
    ]


def test_decoded_map_meta_is_flattened(tmp_path, report_dir):
    cfg = make_config(tmp_path)
    data = make_data()
    pin = data["item"][5]["frontmatter"]
    pin["industry"] = ["Aerospace", " ", "Defense"]
    pin["name"] = {"first": " Space Corp "}
    written = generate_adoc_site(data, cfg, log=lambda *a: None, downloader=FakeDownloader())

    text = open(written[0], encoding="utf-8").read()
    meta = yaml.safe_load(text[4:].partition("---\n")[0])
    assert meta["industry"] == "Aerospace, Defense"
    assert meta["name"] == "Space Corp"
