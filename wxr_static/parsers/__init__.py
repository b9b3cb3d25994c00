"""
Parsers and converters used by the migration pipeline.

* :mod:`~wxr_static.parsers.html_normalizer` – HTML clean-up and Markdown conversion
* :mod:`~wxr_static.parsers.converters` – pandoc/asciidoctor subprocesses
* :mod:`~wxr_static.parsers.story_fields` – label normalization and field extraction
* :mod:`~wxr_static.parsers.testimonials` – Elementor testimonial quotes
"""

from .html_normalizer import html_to_markdown, normalize_html

__all__ = ["html_to_markdown", "normalize_html"]
