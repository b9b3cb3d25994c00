"""
Top-level package for the WordPress → static site migration.

This package bundles the components that turn a WordPress WXR export into
content files for the static site: AsciiDoc pages for the first generation
of the site and YAML user stories for the second.  Modules are split into
subpackages:

* :mod:`wxr_static.extractors` – WXR parsing and post-meta decoding
* :mod:`wxr_static.parsers` – HTML normalization, converters, field extraction
* :mod:`wxr_static.migrators` – the two site generators and image downloads
* :mod:`wxr_static.models` – pydantic models of the written records
* :mod:`wxr_static.utils` – text helpers, fixups and event logging

Orchestration is handled in :mod:`wxr_static.migration_tool`.
"""
