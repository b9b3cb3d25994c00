"""
Static site generators.

This subpackage writes the migrated content: AsciiDoc pages for the first
generation of the site, YAML user stories for the second, and the images
both of them reference.
"""
