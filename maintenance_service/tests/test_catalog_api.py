"""Machine models, operations and maintenance ranges."""
import datetime


# ---------------- Machine models ----------------

def test_machine_model_crud(client, make_machine_model):
    model = make_machine_model(name="Press 200", manufacturer="Bosch", brand="Rexroth", year=2019)
    assert model["machines_count"] == 0

    response = client.put(f"/api/machine-models/{model['id']}", json={"year": 2021})
    assert response.status_code == 200
    assert response.json()["year"] == 2021

    search = client.get("/api/machine-models", params={"search": "rexroth"}).json()
    assert search["total_items"] == 1

    response = client.delete(f"/api/machine-models/{model['id']}")
    assert response.status_code == 200
    assert client.get(f"/api/machine-models/{model['id']}").status_code == 404


def test_machine_model_year_bounds(client):
    too_new = datetime.date.today().year + 2
    for year in (1899, too_new):
        response = client.post("/api/machine-models", json={
            "name": "Old", "manufacturer": "M", "brand": "B", "year": year})
        assert response.status_code == 400


def test_machine_model_in_use_cannot_be_deleted(client, make_machine_model, make_machine):
    model = make_machine_model()
    make_machine(model_id=model["id"])

    response = client.delete(f"/api/machine-models/{model['id']}")
    assert response.status_code == 400
    assert response.json()["data"] == {"machines_count": 1}

    bulk = client.post("/api/machine-models/bulk-delete", json={"ids": [model["id"]]})
    assert bulk.status_code == 400


# ---------------- Operations ----------------

def test_operation_crud_and_filters(client, make_operation):
    oil = make_operation("Check oil", type="boolean")
    make_operation("Measure vibration", type="number")

    assert oil["internal_code"]

    by_type = client.get("/api/operations", params={"type": "number"}).json()
    assert [item["name"] for item in by_type["items"]] == ["Measure vibration"]

    response = client.put(f"/api/operations/{oil['id']}", json={"order": 3, "type": "text"})
    assert response.status_code == 200
    assert response.json()["order"] == 3
    assert response.json()["type"] == "text"

    lookup = client.get("/api/operations/lookup").json()
    assert {item["name"] for item in lookup} == {"Check oil", "Measure vibration"}


def test_operation_invalid_type(client):
    response = client.post("/api/operations", json={"name": "X", "description": "d", "type": "colour"})
    assert response.status_code == 400


def test_operation_used_by_range_cannot_be_deleted(client, make_operation, make_range):
    oil = make_operation()
    make_range(operation_ids=[oil["id"]])

    response = client.delete(f"/api/operations/{oil['id']}")
    assert response.status_code == 400
    assert response.json()["data"]["maintenance_ranges_count"] == 1


def test_operation_bulk_delete(client, make_operation):
    ids = [make_operation(f"Op {i}")["id"] for i in range(3)]
    response = client.post("/api/operations/bulk-delete", json={"ids": ids})
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 3
    assert client.get("/api/operations").json()["total_items"] == 0


# ---------------- Maintenance ranges ----------------

def test_range_keeps_recurrence_metadata(client, make_operation, make_range):
    b = make_operation("B step", order=2)
    a = make_operation("A step", order=1)
    maintenance_range = make_range(
        "Weekly", operation_ids=[b["id"], a["id"]],
        frequency="weekly", start_time="07:30",
        days_of_week=["friday", "monday", "friday"])

    assert maintenance_range["frequency"] == "weekly"
    assert maintenance_range["start_time"] == "07:30"
    assert maintenance_range["days_of_week"] == ["monday", "friday"]
    assert [op["name"] for op in maintenance_range["operations"]] == ["A step", "B step"]


def test_range_rejects_bad_start_time(client):
    response = client.post("/api/maintenance-ranges", json={
        "name": "Bad", "type": "preventive", "start_time": "25:00"})
    assert response.status_code == 400


def test_range_filters_by_type(client, make_range):
    make_range("P", type="preventive")
    make_range("C", type="corrective")

    body = client.get("/api/maintenance-ranges", params={"type": "corrective"}).json()
    assert [item["name"] for item in body["items"]] == ["C"]


def test_range_update_replaces_operations(client, make_operation, make_range):
    first = make_operation("First")
    second = make_operation("Second")
    maintenance_range = make_range(operation_ids=[first["id"]])

    response = client.put(f"/api/maintenance-ranges/{maintenance_range['id']}",
                          json={"operation_ids": [second["id"]], "description": "updated"})
    assert response.status_code == 200
    assert response.json()["operation_ids"] == [second["id"]]
    assert response.json()["description"] == "updated"


def test_range_with_unknown_operation_is_rejected(client):
    response = client.post("/api/maintenance-ranges", json={
        "name": "R", "type": "preventive", "operation_ids": ["00000000-0000-0000-0000-000000000001"]})
    assert response.status_code == 400


def test_range_type_change_cannot_mix_types_on_a_machine(client, make_range, make_machine):
    first = make_range("First")
    second = make_range("Second")
    machine = make_machine(maintenance_range_ids=[first["id"], second["id"]])

    response = client.put(f"/api/maintenance-ranges/{second['id']}", json={"type": "corrective"})
    assert response.status_code == 400
    assert response.json()["data"] == {"machine_id": machine["id"]}
    assert client.get(f"/api/maintenance-ranges/{second['id']}").json()["type"] == "preventive"


def test_range_cannot_turn_corrective_while_machine_has_direct_operations(
        client, make_operation, make_range, make_machine):
    direct = make_operation("Direct")
    maintenance_range = make_range("Only")
    make_machine(maintenance_range_ids=[maintenance_range["id"]], operation_ids=[direct["id"]])

    response = client.put(f"/api/maintenance-ranges/{maintenance_range['id']}", json={"type": "corrective"})
    assert response.status_code == 400


def test_range_without_direct_operations_can_turn_corrective(client, make_range, make_machine):
    maintenance_range = make_range("Only")
    make_machine(maintenance_range_ids=[maintenance_range["id"]])

    response = client.put(f"/api/maintenance-ranges/{maintenance_range['id']}", json={"type": "corrective"})
    assert response.status_code == 200
    assert response.json()["type"] == "corrective"


def test_range_cannot_take_a_machine_direct_operation(client, make_operation, make_range, make_machine):
    in_range = make_operation("In range")
    direct = make_operation("Direct")
    spare = make_operation("Spare")
    maintenance_range = make_range(operation_ids=[in_range["id"]])
    make_machine(maintenance_range_ids=[maintenance_range["id"]], operation_ids=[direct["id"]])

    response = client.put(f"/api/maintenance-ranges/{maintenance_range['id']}",
                          json={"operation_ids": [in_range["id"], direct["id"]]})
    assert response.status_code == 400
    assert client.get(f"/api/maintenance-ranges/{maintenance_range['id']}").json()["operation_ids"] == [in_range["id"]]

    response = client.put(f"/api/maintenance-ranges/{maintenance_range['id']}",
                          json={"operation_ids": [in_range["id"], spare["id"]]})
    assert response.status_code == 200
