#!/usr/bin/env python3
"""
Count the bold labels that open paragraphs in the converted user stories
and export a summary (label, count, known) to help grow the FIELDS and
FIELD_ALIASES tables.

Usage:
  python scripts/list_field_labels.py \\
    --input jenkinsistheway-md.json \\
    --output data/field_labels.csv

If the arguments are omitted the defaults above are used.
"""

from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from collections import Counter
from pathlib import Path
from typing import Iterable

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wxr_static.parsers.story_fields import FIELDS, iter_labels


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="List the field labels used in the convert-md JSON dump."
    )
    parser.add_argument(
        "--input",
        default="jenkinsistheway-md.json",
        help="Path of the JSON dump written by 'main.py convert-md'",
    )
    parser.add_argument(
        "--output",
        default="data/field_labels.csv",
        help="Path of the CSV written with (label,count,known)",
    )
    return parser.parse_args(argv)


def iter_markdown(json_path: Path) -> Iterable[str]:
    with json_path.open("r", encoding="utf-8") as f:
        items = json.load(f)
    for item in items:
        if item.get("post_type") == "post" and item.get("md"):
            yield item["md"]


def count_labels(json_path: Path) -> Counter:
    counter: Counter[str] = Counter()
    for md in iter_markdown(json_path):
        counter.update(iter_labels(md))
    return counter


def write_counts_csv(counter: Counter, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["label", "count", "known"])
        for label, count in sorted(counter.items(), key=lambda x: (-x[1], x[0])):
            writer.writerow([label, count, "yes" if label in FIELDS else "no"])


def main(argv=None) -> None:
    args = parse_args(argv)
    in_path = Path(args.input)
    out_path = Path(args.output)

    if not in_path.exists():
        raise SystemExit(f"Input file not found: {in_path}")

    counts = count_labels(in_path)
    write_counts_csv(counts, out_path)

    unknown = [label for label in counts if label not in FIELDS]
    print(f"Distinct labels: {len(counts)}")
    print(f"Unknown labels: {len(unknown)}")
    print(f"File written: {out_path}")


if __name__ == "__main__":
    main()
