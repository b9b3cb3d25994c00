"""
Entry point for the WordPress to static site migration tool.

Usage::

    python main.py convert       # WXR -> JSON dump with AsciiDoc bodies
    python main.py generate      # JSON dump -> .adoc pages
    python main.py convert-md    # WXR -> JSON dump with Markdown bodies
    python main.py generate-md   # JSON dump -> <post_name>/index.yaml stories
    python main.py adoc-to-md page.adoc --output page.md
"""

import argparse
import os
import sys

from wxr_static.migration_tool import MigrationTool
from wxr_static.parsers.converters import ConverterError

CONFIG_FILE = "config/migration_config.json"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Migrate a WordPress WXR export to static site content.")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON configuration file")
    parser.add_argument("--dry-run", action="store_true", help="Log writes and downloads without doing them")
    parser.add_argument("--limit", type=int, default=None, help="Process at most this many posts")
    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("convert", "Extract the WXR export and convert bodies to AsciiDoc"),
        ("convert-md", "Extract the WXR export and convert bodies to Markdown"),
    ):
        cmd = commands.add_parser(name, help=help_text)
        cmd.add_argument("--input", help="WXR export to read")
        cmd.add_argument("--output", help="JSON dump to write")

    for name, help_text in (
        ("generate", "Write .adoc pages from the convert dump"),
        ("generate-md", "Write index.yaml user stories from the convert-md dump"),
    ):
        cmd = commands.add_parser(name, help=help_text)
        cmd.add_argument("--input", help="JSON dump to read")
        cmd.add_argument("--output-dir", help="Directory the content is written to")

    cmd = commands.add_parser("adoc-to-md", help="Convert a single AsciiDoc file to Markdown")
    cmd.add_argument("input", help="AsciiDoc file to read")
    cmd.add_argument("--output", help="Markdown file to write (stdout when omitted)")
    return parser.parse_args(argv)


def main(argv=None):
    """
    Run one step of the migration and return the process exit code.
    """
    args = parse_args(argv)
    tool = MigrationTool(config_file=args.config)
    if args.dry_run:
        tool.config["migration"]["dry_run"] = True
    if args.limit is not None:
        tool.config["migration"]["limit"] = args.limit

    if args.command in ("convert", "convert-md"):
        xml_path = args.input or tool.config["input"]["xml_path"]
        if not os.path.exists(xml_path):
            tool.log_message(f"WordPress export not found: {xml_path}", level="ERROR")
            return 1
        if args.command == "convert":
            tool.convert(xml_path, args.output)
        else:
            tool.convert_md(xml_path, args.output)

    elif args.command in ("generate", "generate-md"):
        section = "adoc" if args.command == "generate" else "markdown"
        json_path = args.input or tool.config[section]["json_path"]
        if not os.path.exists(json_path):
            tool.log_message(f"JSON dump not found: {json_path} (run the convert step first)", level="ERROR")
            return 1
        if args.output_dir:
            tool.config[section]["content_dir"] = args.output_dir
        if args.command == "generate":
            tool.generate(json_path)
        else:
            tool.generate_md(json_path)

    else:
        if not os.path.exists(args.input):
            tool.log_message(f"AsciiDoc file not found: {args.input}", level="ERROR")
            return 1
        try:
            markdown = tool.adoc_to_markdown(args.input, args.output)
        except ConverterError as e:
            return e.exit_code or 1
        if not args.output:
            sys.stdout.write(markdown)
        return 0

    tool.log_message("Migration step finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
