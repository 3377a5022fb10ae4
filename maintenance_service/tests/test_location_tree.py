from maintenance_service.app.services.location_tree import (
    build_location_tree, build_path, flatten_location_tree, is_descendant)

ROWS = [
    {"id": "plant", "parent_id": None, "name": "Plant"},
    {"id": "hall-b", "parent_id": "plant", "name": "Hall B"},
    {"id": "hall-a", "parent_id": "plant", "name": "Hall A"},
    {"id": "line-1", "parent_id": "hall-a", "name": "Line 1"},
    {"id": "office", "parent_id": None, "name": "Office"},
]


def test_build_tree_nests_children_sorted_by_name():
    tree = build_location_tree(ROWS)
    assert [node["name"] for node in tree] == ["Office", "Plant"]
    plant = tree[1]
    assert [child["name"] for child in plant["children"]] == ["Hall A", "Hall B"]
    assert plant["children"][0]["children"][0]["id"] == "line-1"


def test_flatten_is_depth_first_with_levels():
    flat = flatten_location_tree(ROWS)
    assert [(row["id"], row["level"]) for row in flat] == [
        ("office", 0), ("plant", 0), ("hall-a", 1), ("line-1", 2), ("hall-b", 1)]


def test_rows_with_missing_parent_become_roots():
    flat = flatten_location_tree([{"id": "x", "parent_id": "gone", "name": "Orphan"}])
    assert flat[0]["level"] == 0


def test_is_descendant():
    parent_of = {row["id"]: row["parent_id"] for row in ROWS}
    assert is_descendant("plant", "line-1", parent_of)
    assert is_descendant("plant", "plant", parent_of)
    assert not is_descendant("hall-b", "line-1", parent_of)


def test_build_path():
    assert build_path(None, "Plant") == "/Plant"
    assert build_path("/Plant", "Hall A") == "/Plant/Hall A"
