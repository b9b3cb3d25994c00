"""
High-level orchestration of the WordPress → static site migration.

This module defines a :class:`MigrationTool` class that ties together the
extractor, the HTML/Markdown parsers and the two site generators.  Each
pipeline step is a method:

* :meth:`MigrationTool.convert` – WXR → JSON dump with AsciiDoc bodies
* :meth:`MigrationTool.generate` – JSON dump → ``.adoc`` pages
* :meth:`MigrationTool.convert_md` – WXR → JSON dump with Markdown bodies
* :meth:`MigrationTool.generate_md` – JSON dump → ``index.yaml`` user stories
* :meth:`MigrationTool.adoc_to_markdown` – one ``.adoc`` file → Markdown

Configuration is supplied via a JSON file path or directly as a
dictionary; missing keys are filled with defaults, some of them from
environment variables.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, List, Optional

from wxr_static.extractors.wxr_extractor import extract_wxr
from wxr_static.migrators.asciidoc_site import generate_adoc_site
from wxr_static.migrators.user_stories import generate_user_stories
from wxr_static.parsers.converters import ConverterError, convert_adoc_to_markdown, convert_html_to_adoc
from wxr_static.parsers.html_normalizer import html_to_markdown
from wxr_static.utils.errors import report_error
from wxr_static.utils.fixups import load_fixups

LOG_DIR = os.path.join("reports", "migration")

DEFAULT_STATIC_IMAGES = [
    "https://jenkinsistheway.io/wp-content/uploads/2020/04/Jenkins-is-the-Way-768x911.png",
    "https://jenkinsistheway.io/wp-content/uploads/2021/11/Screen-Shot-2021-11-18-at-10.18.48-AM.png",
    "https://jenkinsistheway.io/wp-content/uploads/2021/09/jenkins_map_pin-180x180-1.png",
    "https://jenkinsistheway.io/wp-content/uploads/2021/09/jenkins_map_pin2-e1634173081372.png",
]

DEFAULT_STORY_LINK_REWRITES = {
    "https://jenkinsistheway.io/user-story/to-focus-on-your-code/":
        "https://jenkinsistheway.io/user-story/jenkins-is-the-way-to-focus-on-your-code/",
}


class MigrationTool:
    """
    Holds the configuration of a run and executes its steps.  Progress is
    printed and appended to ``reports/migration/migration.log``; per-post
    failures are recorded with :mod:`wxr_static.utils.errors` and never stop
    the run.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = {}

        config.setdefault("input", {})
        config["input"].setdefault("xml_path", os.getenv("WXR_XML_PATH", "jenkins.WordPress.xml"))

        config.setdefault("adoc", {})
        config["adoc"].setdefault("json_path", "jenkinsistheway.json")
        config["adoc"].setdefault("content_dir", os.path.join("..", "jenkins.io", "content", "jenkinsistheway"))
        config["adoc"].setdefault("images_dir", os.path.join("..", "jenkins.io", "content", "images", "jenkinsistheway"))
        config["adoc"].setdefault("images_url_prefix", "/images/jenkinsistheway")

        config.setdefault("markdown", {})
        config["markdown"].setdefault("json_path", "jenkinsistheway-md.json")
        config["markdown"].setdefault("content_dir", os.path.join("..", "jenkins-is-the-way", "src", "user-story"))
        config["markdown"].setdefault("images_dir", os.path.join("..", "jenkins-is-the-way", "src", "images"))
        config["markdown"].setdefault("static_images", list(DEFAULT_STATIC_IMAGES))
        config["markdown"].setdefault("fixups_path", os.path.join("config", "fixups.yaml"))

        config.setdefault("site", {})
        config["site"].setdefault("base_url", "https://jenkinsistheway.io")
        config["site"].setdefault("story_prefix", "/user-story/")
        config["site"].setdefault("story_link_rewrites", dict(DEFAULT_STORY_LINK_REWRITES))

        config.setdefault("converters", {})
        config["converters"].setdefault("pandoc", os.getenv("PANDOC_BIN", "pandoc"))
        config["converters"].setdefault("asciidoctor", os.getenv("ASCIIDOCTOR_BIN", "asciidoctor"))

        config.setdefault("migration", {})
        config["migration"].setdefault("dry_run", False)
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("download_timeout", 30)

        self.config = config

    def log_message(self, message: str, level: str = "INFO") -> None:
        print(f"[{level}] {message}")
        os.makedirs(LOG_DIR, exist_ok=True)
        with open(os.path.join(LOG_DIR, "migration.log"), "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")

    def _write_json(self, path: str, data: Any) -> None:
        self.log_message("Starting writing")
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
        self.log_message(f"End writing {path}")

    def _read_json(self, path: str) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _convert_items(self, items: List[Dict[str, Any]], key: str, convert: Callable[[str], str]) -> None:
        """Convert each item's ``content:encoded`` into ``item[key]``, best effort."""
        limit: Optional[int] = self.config["migration"]["limit"]
        for count, item in enumerate(items):
            html = item.get("content:encoded")
            if html and (limit is None or count < limit):
                try:
                    item[key] = convert(html)
                except Exception as e:
                    self.log_message(
                        f"error processing [#{item.get('post_id')} - {item.get('post_name')}]: {e}", "ERROR"
                    )
                    report_error("CONVERSION_FAILED", item, e)
            item.pop("content:encoded", None)
            item.pop("excerpt:encoded", None)

    def extract(self, xml_path: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        xml_path = xml_path or self.config["input"]["xml_path"]
        self.log_message(f"Extracting records from {xml_path}")
        data = extract_wxr(xml_path)
        self.log_message(
            f"Found {len(data['item'])} items, {len(data['author'])} authors, "
            f"{len(data['category'])} categories, {len(data['tag'])} tags, {len(data['term'])} terms"
        )
        return data

    def convert(self, xml_path: Optional[str] = None, json_path: Optional[str] = None) -> Dict[str, Any]:
        """Generation 1: extract the export and convert bodies to AsciiDoc with pandoc."""
        data = self.extract(xml_path)
        pandoc = self.config["converters"]["pandoc"]
        self._convert_items(data["item"], "adoc", lambda html: convert_html_to_adoc(html, pandoc=pandoc))
        self._write_json(json_path or self.config["adoc"]["json_path"], data)
        return data

    def convert_md(self, xml_path: Optional[str] = None, json_path: Optional[str] = None) -> List[Dict[str, Any]]:
        """Generation 2: extract the export and convert normalized bodies to Markdown."""
        data = self.extract(xml_path)
        self._convert_items(data["item"], "md", html_to_markdown)
        self._write_json(json_path or self.config["markdown"]["json_path"], data["item"])
        return data["item"]

    def generate(self, json_path: Optional[str] = None) -> List[str]:
        json_path = json_path or self.config["adoc"]["json_path"]
        self.log_message(f"Generating AsciiDoc pages from {json_path}")
        written = generate_adoc_site(self._read_json(json_path), self.config, log=self.log_message)
        self.log_message(f"Done writing {len(written)} pages")
        return written

    def generate_md(self, json_path: Optional[str] = None) -> List[str]:
        json_path = json_path or self.config["markdown"]["json_path"]
        fixups = load_fixups(self.config["markdown"]["fixups_path"])
        self.log_message(f"Generating user stories from {json_path} with {len(fixups)} fixups")
        written = generate_user_stories(self._read_json(json_path), self.config, log=self.log_message, fixups=fixups)
        self.log_message(f"Done writing {len(written)} stories")
        return written

    def adoc_to_markdown(self, adoc_path: str, out_path: Optional[str] = None) -> str:
        with open(adoc_path, "r", encoding="utf-8") as f:
            body = f.read()
        front_matter = ""
        if body.startswith("---\n") and "\n---\n" in body[4:]:
            header, _, body = body[4:].partition("\n---\n")
            front_matter = f"---\n{header}\n---\n"
        try:
            markdown = front_matter + convert_adoc_to_markdown(
                body,
                pandoc=self.config["converters"]["pandoc"],
                asciidoctor=self.config["converters"]["asciidoctor"],
            )
        except ConverterError as e:
            self.log_message(f"Failed to convert {adoc_path}: {e}", "ERROR")
            raise
        if out_path:
            with open(out_path, "w", encoding="utf-8") as f:
                f.write(markdown)
            self.log_message(f"Markdown written to {out_path}")
        return markdown
