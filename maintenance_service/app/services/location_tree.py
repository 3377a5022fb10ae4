from typing import Any, Dict, List, Mapping, Optional


def _key(value) -> Optional[str]:
    return str(value) if value is not None else None


def _children_by_parent(rows: List[Dict[str, Any]]) -> Dict[Optional[str], List[Dict[str, Any]]]:
    ids = {_key(row["id"]) for row in rows}
    grouped: Dict[Optional[str], List[Dict[str, Any]]] = {}
    for row in rows:
        parent = _key(row.get("parent_id"))
        # rows whose parent is outside the set are treated as roots
        if parent not in ids:
            parent = None
        grouped.setdefault(parent, []).append(row)
    for siblings in grouped.values():
        siblings.sort(key=lambda r: (r.get("name") or "").lower())
    return grouped


def build_location_tree(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    grouped = _children_by_parent(rows)

    def build(parent_key):
        nodes = []
        for row in grouped.get(parent_key, []):
            node = dict(row)
            node["children"] = build(_key(row["id"]))
            nodes.append(node)
        return nodes

    return build(None)


def flatten_location_tree(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Depth first order, each row tagged with its depth in the set."""
    grouped = _children_by_parent(rows)
    flat = []

    def walk(parent_key, depth):
        for row in grouped.get(parent_key, []):
            item = dict(row)
            item["level"] = depth
            flat.append(item)
            walk(_key(row["id"]), depth + 1)

    walk(None, 0)
    return flat


def is_descendant(ancestor_id, candidate_id, parent_of: Mapping[str, Optional[str]]) -> bool:
    """True when candidate sits somewhere below ancestor (or is ancestor)."""
    ancestor = _key(ancestor_id)
    current = _key(candidate_id)
    visited = set()
    while current is not None and current not in visited:
        if current == ancestor:
            return True
        visited.add(current)
        current = _key(parent_of.get(current))
    return False


def build_path(parent_path: Optional[str], name: str) -> str:
    return f"{parent_path or ''}/{name}"
