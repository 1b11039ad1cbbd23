"""Path tree builders.

``render_tree`` produces the indented text outline embedded in prompts;
``build_file_tree`` produces the JSON tree served by the files API.
Both order directories before files, then names alphabetically.
"""

from __future__ import annotations

from collections.abc import Iterable

from artifactor.db.models import FileRecord

EMPTY_PROJECT = "Empty project"

_DIR_ICON = "📁"
_FILE_ICON = "📄"


def build_path_tree(paths: Iterable[str]) -> dict:
    """Fold slash-separated *paths* into nested dicts; files map to None."""
    tree: dict = {}
    for path in paths:
        parts = [p for p in path.split("/") if p]
        if not parts:
            continue
        node = tree
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node.setdefault(parts[-1], None)
    return tree


def _sort_key(item: tuple[str, dict | None]) -> tuple[bool, str, str]:
    name, child = item
    return (child is None, name.casefold(), name)


def render_tree(tree: dict, indent: str = "") -> str:
    """Render a path tree as an indented outline, two spaces per level."""
    lines: list[str] = []
    for name, child in sorted(tree.items(), key=_sort_key):
        if child is None:
            lines.append(f"{indent}{_FILE_ICON} {name}")
        else:
            lines.append(f"{indent}{_DIR_ICON} {name}")
            nested = render_tree(child, indent + "  ")
            if nested:
                lines.append(nested)
    return "\n".join(lines)


def render_structure(paths: Iterable[str]) -> str:
    """Outline for a set of indexed paths; ``"Empty project"`` when there are none."""
    tree = build_path_tree(paths)
    if not tree:
        return EMPTY_PROJECT
    return render_tree(tree)


def build_file_tree(records: Iterable[FileRecord]) -> dict:
    """Build the nested JSON tree for a project's files.

    Directory nodes: ``{name, type: "directory", path, children}``.
    File nodes: ``{name, type: "file", path, id, language, size}``.
    """
    root: dict = {"name": "/", "type": "directory", "path": "", "children": {}}
    for record in records:
        parts = [p for p in record.path.split("/") if p]
        node = root
        for i, part in enumerate(parts[:-1]):
            child = node["children"].get(part)
            if child is None or child["type"] != "directory":
                child = node["children"][part] = {
                    "name": part,
                    "type": "directory",
                    "path": "/".join(parts[: i + 1]),
                    "children": {},
                }
            node = child
        node["children"][parts[-1]] = {
            "name": parts[-1],
            "type": "file",
            "path": record.path,
            "id": record.id,
            "language": record.language,
            "size": record.size,
        }
    return _finalize(root)


def _finalize(node: dict) -> dict:
    if node["type"] == "file":
        return node
    children = sorted(
        node["children"].values(),
        key=lambda c: (c["type"] == "file", c["name"].casefold(), c["name"]),
    )
    return {**node, "children": [_finalize(c) for c in children]}
