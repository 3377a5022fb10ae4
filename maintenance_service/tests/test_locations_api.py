import math
import uuid

from maintenance_service.app.models.space_sites.locations import Location


def test_requires_token(anonymous_client):
    response = anonymous_client.get("/api/locations")
    assert response.status_code == 401
    assert response.json()["status"] == "Failure"


def test_invalid_token_is_rejected(anonymous_client):
    response = anonymous_client.get("/api/locations", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_create_child_sets_path_level_and_parent_leaf(client, make_location):
    plant = make_location("Plant")
    assert plant["path"] == "/Plant"
    assert plant["level"] == 0
    assert plant["is_leaf"] is True
    assert plant["internal_code"]

    hall = make_location("Hall A", parent_id=plant["id"])
    assert hall["path"] == "/Plant/Hall A"
    assert hall["level"] == 1

    parent = client.get(f"/api/locations/{plant['id']}").json()
    assert parent["is_leaf"] is False
    assert parent["children_count"] == 1
    assert parent["has_children"] is True


def test_blank_name_is_a_validation_error(client):
    response = client.post("/api/locations", json={"name": "  "})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation error")


def test_duplicate_sibling_name_is_rejected(client, make_location):
    plant = make_location("Plant")
    make_location("Hall A", parent_id=plant["id"])

    response = client.post("/api/locations", json={"name": "hall a", "parent_id": plant["id"]})
    assert response.status_code == 400

    # same name under another parent is fine
    office = make_location("Office")
    make_location("Hall A", parent_id=office["id"])


def test_unknown_parent_is_rejected(client):
    response = client.post("/api/locations", json={"name": "Hall", "parent_id": str(uuid.uuid4())})
    assert response.status_code == 400


def test_delete_blocked_by_children(client, make_location):
    plant = make_location("Plant")
    make_location("Hall A", parent_id=plant["id"])

    response = client.delete(f"/api/locations/{plant['id']}")
    assert response.status_code == 400
    assert response.json()["data"] == {"children_count": 1, "machines_count": 0}


def test_delete_blocked_by_machines(client, make_location, make_machine):
    hall = make_location("Hall")
    make_machine(location_id=hall["id"], location=None)

    response = client.delete(f"/api/locations/{hall['id']}")
    assert response.status_code == 400
    assert response.json()["data"]["machines_count"] == 1


def test_deleting_last_child_turns_parent_into_leaf(client, make_location):
    plant = make_location("Plant")
    hall = make_location("Hall A", parent_id=plant["id"])

    response = client.delete(f"/api/locations/{hall['id']}")
    assert response.status_code == 200

    assert client.get(f"/api/locations/{plant['id']}").json()["is_leaf"] is True


def test_move_under_descendant_is_rejected(client, make_location):
    plant = make_location("Plant")
    hall = make_location("Hall A", parent_id=plant["id"])
    line = make_location("Line 1", parent_id=hall["id"])

    response = client.put(f"/api/locations/{plant['id']}", json={"parent_id": line["id"]})
    assert response.status_code == 400

    response = client.put(f"/api/locations/{plant['id']}", json={"parent_id": plant["id"]})
    assert response.status_code == 400


def test_rename_and_move_rebuild_subtree_paths(client, make_location):
    plant = make_location("Plant")
    hall = make_location("Hall A", parent_id=plant["id"])
    line = make_location("Line 1", parent_id=hall["id"])
    office = make_location("Office")

    response = client.put(f"/api/locations/{plant['id']}", json={"name": "Factory"})
    assert response.status_code == 200
    assert client.get(f"/api/locations/{line['id']}").json()["path"] == "/Factory/Hall A/Line 1"

    response = client.put(f"/api/locations/{hall['id']}", json={"parent_id": office["id"]})
    assert response.status_code == 200
    moved_line = client.get(f"/api/locations/{line['id']}").json()
    assert moved_line["path"] == "/Office/Hall A/Line 1"
    assert moved_line["level"] == 2
    assert client.get(f"/api/locations/{plant['id']}").json()["is_leaf"] is True


def test_list_is_paginated(client, make_location):
    for name in ("A", "B", "C"):
        make_location(name)

    body = client.get("/api/locations", params={"limit": 2}).json()
    assert body["total_items"] == 3
    assert body["total_pages"] == math.ceil(3 / 2)
    assert body["items_per_page"] == 2
    assert len(body["items"]) == 2

    second = client.get("/api/locations", params={"limit": 2, "page": 2}).json()
    assert len(second["items"]) == 1
    assert second["current_page"] == 2


def test_limit_is_clamped(client, make_location):
    make_location("A")
    body = client.get("/api/locations", params={"limit": 1000, "page": 0}).json()
    assert body["items_per_page"] == 100
    assert body["current_page"] == 1


def test_root_only_and_nested_listing(client, make_location):
    plant = make_location("Plant")
    make_location("Hall A", parent_id=plant["id"])

    roots = client.get("/api/locations", params={"root_only": True}).json()
    assert [item["name"] for item in roots["items"]] == ["Plant"]

    nested = client.get("/api/locations", params={"include_children": True}).json()
    assert nested["total_items"] == 1
    assert nested["items"][0]["children"][0]["name"] == "Hall A"

    flat = client.get("/api/locations", params={"flat": True}).json()
    assert [(i["name"], i["level"]) for i in flat["items"]] == [("Plant", 0), ("Hall A", 1)]


def test_tree_and_children_endpoints(client, make_location, make_machine):
    plant = make_location("Plant")
    hall = make_location("Hall A", parent_id=plant["id"])
    make_location("Office")
    make_machine(location_id=hall["id"], location=None)

    tree = client.get("/api/locations/tree", params={"limit": 1}).json()
    assert tree["total_items"] == 2
    assert tree["has_more"] is True
    assert len(tree["locations"]) == 1

    children = client.get(f"/api/locations/{plant['id']}/children").json()
    assert len(children) == 1
    assert children[0]["machines_count"] == 1
    assert children[0]["machines"][0]["location"] == "/Plant/Hall A"


def test_other_company_cannot_see_location(client, make_location, other_headers):
    plant = make_location("Plant")
    response = client.get(f"/api/locations/{plant['id']}", headers=other_headers)
    assert response.status_code == 404

    listing = client.get("/api/locations", headers=other_headers).json()
    assert listing["total_items"] == 0


def test_bulk_delete(client, make_location):
    a = make_location("A")
    b = make_location("B")
    parent = make_location("Parent")
    make_location("Child", parent_id=parent["id"])

    blocked = client.post("/api/locations/bulk-delete", json={"ids": [a["id"], parent["id"]]})
    assert blocked.status_code == 400

    response = client.post("/api/locations/bulk-delete", json={"ids": [a["id"], b["id"]]})
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 2


def test_all_digit_company_id_reads_back(client, headers_for, db_session):
    company_id = uuid.UUID("12345678-1234-1234-1234-123456789012")
    headers = headers_for(company_id)

    created = client.post("/api/locations", json={"name": "Plant"}, headers=headers)
    assert created.status_code == 201

    fetched = client.get(f"/api/locations/{created.json()['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Plant"
    assert client.get("/api/locations", headers=headers).json()["total_items"] == 1

    row = db_session.query(Location).one()
    assert row.company_id == company_id
    assert isinstance(row.id, uuid.UUID)


def test_rename_refreshes_machine_labels(client, make_location, make_machine):
    plant = make_location("Plant")
    hall = make_location("Hall A", parent_id=plant["id"])
    on_path = make_machine(location_id=hall["id"], location=None)
    custom = make_machine(location_id=hall["id"], location="Bay 3")
    assert on_path["location"] == "/Plant/Hall A"

    client.put(f"/api/locations/{plant['id']}", json={"name": "Factory"})
    assert client.get(f"/api/machines/{on_path['id']}").json()["location"] == "/Factory/Hall A"
    assert client.get(f"/api/machines/{custom['id']}").json()["location"] == "Bay 3"

    client.put(f"/api/locations/{hall['id']}", json={"name": "Hall B"})
    assert client.get(f"/api/machines/{on_path['id']}").json()["location"] == "/Factory/Hall B"
