"""
Extractors for WordPress export files.

This subpackage parses WXR exports into flattened dictionaries: authors,
categories, tags, terms and items, with post meta decoded from PHP
serialization where possible.
"""

from .wxr_extractor import extract_wxr, primary_category

__all__ = ["extract_wxr", "primary_category"]
