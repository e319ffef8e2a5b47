"""Plain renderings of an ``AssetTree`` for the CLI and the web UI."""

from __future__ import annotations

from typing import Any

from domain_types import AssetTree, TreeNode

__all__ = ["node_to_dict", "tree_to_dicts", "render_text"]

_KIND_MARKERS = {
    "location": "[L]",
    "asset": "[A]",
    "component": "[C]",
}


def _node_fields(node: TreeNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "kind": node.kind,
        "sensorType": node.sensor_type,
        "status": node.status,
        "children": [],
    }


def node_to_dict(node: TreeNode) -> dict[str, Any]:
    result = _node_fields(node)
    stack = [(node, result)]
    while stack:
        current, payload = stack.pop()
        for child in current.children:
            child_payload = _node_fields(child)
            payload["children"].append(child_payload)
            stack.append((child, child_payload))
    return result


def tree_to_dicts(tree: AssetTree) -> list[dict[str, Any]]:
    """Root-level nodes as nested JSON-ready dicts."""

    return [node_to_dict(node) for node in tree.nodes]


def _node_label(node: TreeNode) -> str:
    marker = _KIND_MARKERS.get(node.kind, "")
    name = node.name or "Unnamed"
    flags = [flag for flag in (node.sensor_type, node.status) if flag]
    label = f"{marker} {name}".strip()
    if flags:
        label += " " + " ".join(f"[{flag}]" for flag in flags)
    return label


def render_text(tree: AssetTree, indent: str = "  ") -> list[str]:
    """Return one indented line per node, depth-first."""

    lines: list[str] = []
    stack = [(node, 0) for node in reversed(tree.nodes)]
    while stack:
        node, depth = stack.pop()
        lines.append(f"{indent * depth}{_node_label(node)}")
        stack.extend((child, depth + 1) for child in reversed(node.children))
    return lines
