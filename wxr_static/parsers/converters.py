"""
Wrappers around the external document converters.

Post bodies are piped through ``pandoc`` (HTML → AsciiDoc, HTML → Markdown)
and ``asciidoctor`` (AsciiDoc → HTML).  Both run as subprocesses with a
UTF-8 locale; any failure is raised as :class:`ConverterError` so the
caller can log the post and move on.
"""

from __future__ import annotations

import os
import subprocess
from typing import Dict, List, Optional

PANDOC = "pandoc"
ASCIIDOCTOR = "asciidoctor"

# Exit codes worth naming in error messages.
EXIT_CODES: Dict[int, str] = {
    1: "General failure",
    2: "Misuse of command",
    3: "Pandoc failed to parse the input",
    4: "Pandoc failed to write the output",
    21: "Unknown reader",
    22: "Unknown writer",
    126: "Command not executable",
    127: "Command not found",
}


class ConverterError(Exception):
    """Raised when an external converter cannot be run or exits non-zero."""

    def __init__(self, command: str, message: str, *, exit_code: Optional[int] = None, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f"{command}: {message}"
        if stderr:
            detail = f"{detail}: {stderr.strip()}"
        super().__init__(detail)


def _converter_env() -> Dict[str, str]:
    return {**os.environ, "LANG": "en_US.UTF-8", "LC_CTYPE": "en_US.UTF-8"}


def run_converter(args: List[str], body: str) -> str:
    """Run ``args`` with ``body`` on stdin and return its stdout."""
    try:
        proc = subprocess.run(
            args,
            input=body.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_converter_env(),
            check=False,
        )
    except OSError as e:
        raise ConverterError(args[0], f"unable to start: {e}") from e

    if proc.returncode != 0:
        description = EXIT_CODES.get(proc.returncode, "Unknown error")
        raise ConverterError(
            args[0],
            f"Command failed: {proc.returncode}: {description}",
            exit_code=proc.returncode,
            stderr=proc.stderr.decode("utf-8", errors="replace"),
        )
    return proc.stdout.decode("utf-8")


def _pandoc_args(pandoc: str, reader: str, writer: str, *, atx_headers: bool) -> List[str]:
    args = [pandoc, "--wrap=none", "-f", reader, "-t", writer]
    if atx_headers:
        args.append("--atx-headers")
    return args + ["-o", "-", "-"]


def run_pandoc(body: str, reader: str, writer: str, *, pandoc: str = PANDOC) -> str:
    """
    Run pandoc with ``--atx-headers``, retrying without it when the installed
    pandoc (3.x) no longer knows the flag.
    """
    try:
        return run_converter(_pandoc_args(pandoc, reader, writer, atx_headers=True), body)
    except ConverterError as e:
        if "atx-headers" not in e.stderr:
            raise
    return run_converter(_pandoc_args(pandoc, reader, writer, atx_headers=False), body)


def convert_html_to_adoc(body: str, *, pandoc: str = PANDOC) -> str:
    return run_pandoc(body, "html", "asciidoc", pandoc=pandoc)


def convert_adoc_to_markdown(body: str, *, pandoc: str = PANDOC, asciidoctor: str = ASCIIDOCTOR) -> str:
    """Render AsciiDoc to HTML with asciidoctor, then to strict Markdown with pandoc."""
    html = run_converter([asciidoctor, "-s", "-o", "-", "-"], body)
    return run_pandoc(html, "html", "markdown_strict", pandoc=pandoc)
