from __future__ import annotations

from typing import Any

from web2builder.models import ElementNode, StructureCounts, StyleSnapshot

SKIPPED_TAGS = frozenset({"script", "style", "meta", "link", "title", "head"})
LANDMARK_TAGS = frozenset({"section", "header", "footer", "main", "article"})
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
ALWAYS_CAPTURED_TAGS = frozenset({"body", "html", "form", "table", "thead", "tbody", "tr"})


def is_captured(node: ElementNode, has_markup: bool) -> bool:
    """Visible boxes, structural tags and anything carrying text or markup are kept."""
    return node.style.is_visible or node.tag in ALWAYS_CAPTURED_TAGS or bool(node.text.strip()) or has_markup


def build_element_tree(raw_nodes: Any, *, max_depth: int = 25) -> ElementNode | None:
    """Rebuild the tree from the walker's flat, parent-indexed node list.

    Entries with an unknown parent, a skipped tag, a depth beyond
    ``max_depth`` or nothing worth capturing are dropped together with
    their descendants.
    """
    if not isinstance(raw_nodes, list) or not raw_nodes:
        return None

    built: dict[int, ElementNode] = {}
    root: ElementNode | None = None
    for index, raw in enumerate(raw_nodes):
        if not isinstance(raw, dict):
            continue
        tag = str(raw.get("tag") or "").lower()
        if not tag or tag in SKIPPED_TAGS:
            continue
        depth = int(raw.get("depth") or 0)
        if depth > max_depth:
            continue
        parent_index = raw.get("parent", -1)
        parent = built.get(parent_index) if isinstance(parent_index, int) else None
        if parent is None and root is not None:
            continue

        attributes = raw.get("attributes") or {}
        node = ElementNode(
            tag=tag,
            style=StyleSnapshot.from_raw(raw.get("style")),
            element_id=str(raw.get("element_id") or ""),
            class_name=str(raw.get("class_name") or ""),
            text=str(raw.get("text") or ""),
            inner_html=str(raw.get("inner_html") or ""),
            outer_html=str(raw.get("outer_html") or ""),
            attributes={str(k): str(v) for k, v in attributes.items()} if isinstance(attributes, dict) else {},
            depth=depth,
            markup_truncated=bool(raw.get("markup_truncated")),
        )
        has_markup = raw.get("has_markup")
        if has_markup is None:
            has_markup = bool(node.inner_html.strip() or node.outer_html.strip())
        if not is_captured(node, bool(has_markup)):
            continue
        built[index] = node
        if parent is None:
            root = node
        else:
            parent.children.append(node)
    return root


def iter_tree(root: ElementNode | None):
    """Depth-first pre-order traversal without recursion."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def count_tree_structure(root: ElementNode | None) -> StructureCounts:
    counts = StructureCounts()
    for node in iter_tree(root):
        counts.elements += 1
        if node.text.strip():
            counts.text_nodes += 1
        if node.tag == "img":
            counts.images += 1
        elif node.tag in LANDMARK_TAGS:
            counts.sections += 1
        elif node.tag == "div":
            counts.containers += 1
        elif node.tag in HEADING_TAGS:
            counts.headings += 1
        elif node.tag == "a":
            counts.links += 1
    return counts
