import xml.etree.ElementTree as ET
from collections import OrderedDict

import phpserialize

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"
WFW_NS = "http://wellformedweb.org/CommentAPI/"
WP_NS_PREFIX = "http://wordpress.org/export/"

TERM_SECTIONS = ("wp:author", "wp:category", "wp:tag", "wp:term")
DROPPED_ITEM_KEYS = ("guid", "link")


def _qualified_name(tag):
    """Map an ElementTree ``{uri}local`` tag to the ``prefix:local`` form used in the export."""
    if not tag.startswith("{"):
        return tag
    uri, local = tag[1:].split("}", 1)
    if uri.startswith(WP_NS_PREFIX):
        prefix = "excerpt" if uri.rstrip("/").endswith("/excerpt") else "wp"
    elif uri == CONTENT_NS:
        prefix = "content"
    elif uri == DC_NS:
        prefix = "dc"
    elif uri == WFW_NS:
        prefix = "wfw"
    else:
        return local
    return f"{prefix}:{local}"


def _element_value(element):
    if len(element):
        return {_qualified_name(child.tag): _element_value(child) for child in element}
    return element.text or ""


def _group_children(element):
    groups = OrderedDict()
    for child in element:
        groups.setdefault(_qualified_name(child.tag), []).append(child)
    return groups


def _flatten_term(element, section):
    """Flatten a ``wp:author``/``wp:category``/... element into a plain dict.

    ``wp:author_login`` becomes ``login`` and ``wp:term_id`` becomes ``term_id``.
    """
    record = {}
    for name, children in _group_children(element).items():
        if len(children) > 1:
            print(f"[WARNING] {section} {name} has more than 1 result, keeping the first")
        key = name.replace(f"{section}_", "").replace("wp:", "")
        record[key] = _element_value(children[0])
    return record


def _category_record(element):
    return {
        "_": element.text or "",
        "domain": element.get("domain", ""),
        "nicename": element.get("nicename", ""),
    }


def looks_serialized(value):
    """WordPress meta is treated as PHP-serialized when its second char is ``:``."""
    return isinstance(value, str) and len(value) > 1 and value[1] == ":"


def _php_array(pairs):
    array = dict(pairs)
    try:
        return phpserialize.dict_to_list(array)
    except ValueError:
        return array


def unserialize_meta(value):
    """Decode a serialized meta value; arrays keyed ``0..n-1`` become lists.

    Raises:
        ValueError: If ``value`` is not a serialization ``phpserialize`` can read.
    """
    return phpserialize.loads(value.encode("utf-8"), decode_strings=True, array_hook=_php_array)


def _postmeta(elements, post_id):
    frontmatter = {}
    for meta in elements:
        key = meta.findtext(f"{{{_wp_uri(meta)}}}meta_key") or ""
        value = meta.findtext(f"{{{_wp_uri(meta)}}}meta_value") or ""
        frontmatter[key] = value
        if looks_serialized(value):
            try:
                frontmatter[key] = unserialize_meta(value)
            except ValueError as e:
                print(f"[WARNING] post {post_id}: could not decode meta '{key}': {e}")
    return frontmatter


def _wp_uri(element):
    return element.tag[1:].split("}", 1)[0]


def _flatten_item(element):
    """Flatten one ``<item>``.

    Single-occurrence children become keys with ``wp:`` removed
    (``wp:post_name`` -> ``post_name``); repeated children are skipped, except
    ``category`` (kept in ``categories``) and ``wp:postmeta`` (decoded into
    ``frontmatter``).
    """
    record = {}
    groups = _group_children(element)
    for name, children in groups.items():
        if name in DROPPED_ITEM_KEYS or name == "wp:postmeta":
            continue
        if name == "category":
            record["categories"] = [_category_record(c) for c in children]
            if len(children) == 1:
                record["category"] = _category_record(children[0])
            continue
        if len(children) > 1:
            continue
        key = name.replace("wp:", "").replace("item_", "")
        record[key] = _element_value(children[0])

    if "wp:postmeta" in groups:
        record["frontmatter"] = _postmeta(groups["wp:postmeta"], record.get("post_id"))
    return record


def extract_wxr(file_path):
    """Parse a WordPress WXR export into flattened records.

    Args:
        file_path (str): Path of the XML export.

    Returns:
        dict: ``{"author": [...], "category": [...], "tag": [...], "term": [...], "item": [...]}``

    Raises:
        FileNotFoundError: If the export does not exist.
        ET.ParseError: If the file is not well-formed XML.
        ValueError: If an item cannot be flattened.
    """
    tree = ET.parse(file_path)
    channel = tree.getroot().find("channel")
    if channel is None:
        raise ValueError(f"{file_path} has no rss/channel element")

    data = {"author": [], "category": [], "tag": [], "term": [], "item": []}
    groups = _group_children(channel)
    for section in TERM_SECTIONS:
        for element in groups.get(section, []):
            data[section.replace("wp:", "")].append(_flatten_term(element, section))

    for element in groups.get("item", []):
        try:
            data["item"].append(_flatten_item(element))
        except Exception as e:
            item_id = "unknown"
            for child in element:
                if _qualified_name(child.tag) == "wp:post_id":
                    item_id = child.text
            raise ValueError(f"Error processing item with ID {item_id} in {file_path}: {e}") from e
    return data


def primary_category(item):
    """Name of the item's category when it has exactly one, else ``None``."""
    category = item.get("category")
    if isinstance(category, dict):
        return category.get("_")
    return None
