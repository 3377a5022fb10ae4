import pytest

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def setup(make_operation, make_range, make_machine):
    """One machine with a preventive range, a direct operation and a spare operation."""
    grease = make_operation("Grease", order=1)
    inspect = make_operation("Inspect")
    extra = make_operation("Extra check")
    preventive = make_range("Monthly", operation_ids=[grease["id"]])
    machine = make_machine(maintenance_range_ids=[preventive["id"]], operation_ids=[inspect["id"]])
    return {
        "grease": grease,
        "inspect": inspect,
        "extra": extra,
        "range": preventive,
        "machine": machine,
    }


@pytest.fixture
def work_order(setup, make_work_order):
    return make_work_order(machines=[{
        "machine_id": setup["machine"]["id"],
        "operation_ids": [setup["extra"]["id"], setup["grease"]["id"]],
    }])


def fill_all(client, work_order, value=True):
    machine = work_order["machines"][0]
    return client.put(
        f"/api/work-orders/{work_order['id']}/machines/{machine['machine_id']}/filled-operations",
        json={"filled_operations": [
            {"operation_id": op_id, "value": value} for op_id in machine["operation_ids"]]})


def test_create_merges_operations_by_source(setup, work_order):
    machine = work_order["machines"][0]
    assert work_order["status"] == "pending"
    assert machine["maintenance_range_ids"] == [setup["range"]["id"]]
    assert machine["operation_ids"] == [
        setup["grease"]["id"], setup["inspect"]["id"], setup["extra"]["id"]]
    assert [op["name"] for op in machine["operations"]] == ["Grease", "Inspect", "Extra check"]
    assert work_order["can_delete"] is True


def test_corrective_order_skips_preventive_ranges(setup, make_work_order):
    work_order = make_work_order(type="corrective", machines=[{"machine_id": setup["machine"]["id"]}])
    machine = work_order["machines"][0]
    assert machine["maintenance_range_ids"] == []
    assert machine["operation_ids"] == [setup["inspect"]["id"]]


def test_create_rejects_duplicate_machine_and_completed_status(client, setup):
    machine_id = setup["machine"]["id"]
    response = client.post("/api/work-orders", json={
        "type": "preventive", "description": "x",
        "machines": [{"machine_id": machine_id}, {"machine_id": machine_id}]})
    assert response.status_code == 400

    response = client.post("/api/work-orders", json={
        "type": "preventive", "description": "x", "status": "completed"})
    assert response.status_code == 400


def test_custom_code_is_unique(client, make_work_order):
    make_work_order(custom_code="WO-1")
    response = client.post("/api/work-orders", json={
        "type": "preventive", "description": "again", "custom_code": "WO-1"})
    assert response.status_code == 400


def test_filling_operations_moves_order_in_progress(client, work_order):
    response = fill_all(client, work_order)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "in_progress"
    assert body["has_maintenance_data"] is True
    assert len(body["machines"][0]["filled_operations"]) == 3
    assert body["machines"][0]["filled_operations"][0]["filled_by"] == "Test Operator"


def test_filling_unknown_operation_is_rejected(client, work_order, make_operation):
    other = make_operation("Not on machine")
    machine_id = work_order["machines"][0]["machine_id"]
    response = client.put(
        f"/api/work-orders/{work_order['id']}/machines/{machine_id}/filled-operations",
        json={"filled_operations": [{"operation_id": other["id"], "value": "x"}]})
    assert response.status_code == 400


def test_status_only_moves_forward(client, work_order):
    response = client.put(f"/api/work-orders/{work_order['id']}", json={"status": "in_progress"})
    assert response.status_code == 200

    response = client.put(f"/api/work-orders/{work_order['id']}", json={"status": "pending"})
    assert response.status_code == 400


def test_delete_rules(client, work_order, make_work_order):
    fill_all(client, work_order)
    response = client.delete(f"/api/work-orders/{work_order['id']}")
    assert response.status_code == 400
    assert response.json()["data"]["has_maintenance_data"] is True

    pending = make_work_order(description="untouched")
    assert client.delete(f"/api/work-orders/{pending['id']}").status_code == 200


def test_machines_locked_once_maintenance_data_exists(client, work_order, make_machine):
    other = make_machine(location="Hall Z")
    client.post(f"/api/work-orders/{work_order['id']}/materials",
                json={"description": "Grease cartridge", "quantity": 1})

    response = client.put(f"/api/work-orders/{work_order['id']}",
                          json={"machines": [{"machine_id": other["id"]}]})
    assert response.status_code == 400

    response = client.put(f"/api/work-orders/{work_order['id']}", json={"type": "corrective"})
    assert response.status_code == 400

    response = client.put(f"/api/work-orders/{work_order['id']}", json={"notes": "still editable"})
    assert response.status_code == 200
    assert response.json()["notes"] == "still editable"


def test_machines_can_change_before_maintenance(client, work_order, make_machine):
    other = make_machine(location="Hall Z")
    response = client.put(f"/api/work-orders/{work_order['id']}",
                          json={"machines": [{"machine_id": other["id"]}]})
    assert response.status_code == 200
    assert [m["machine_id"] for m in response.json()["machines"]] == [other["id"]]


def test_labor_and_materials(client, work_order):
    wo_id = work_order["id"]

    body = client.post(f"/api/work-orders/{wo_id}/labor", json={"operator_name": "Ana"}).json()
    assert body["labor"][0]["is_active"] is True
    assert body["status"] == "in_progress"

    body = client.post(f"/api/work-orders/{wo_id}/labor/0/stop").json()
    assert body["labor"][0]["is_active"] is False
    assert body["labor"][0]["end_time"] is not None

    assert client.post(f"/api/work-orders/{wo_id}/labor/0/stop").status_code == 400

    body = client.post(f"/api/work-orders/{wo_id}/materials",
                       json={"description": "Oil", "quantity": 2}).json()
    assert body["materials"] == [{"description": "Oil", "unit_type": "pcs", "unit": "pcs", "quantity": 2}]

    body = client.put(f"/api/work-orders/{wo_id}/materials/0", json={"unit_type": "l"}).json()
    assert body["materials"][0]["unit"] == "l"

    response = client.post(f"/api/work-orders/{wo_id}/materials",
                           json={"description": "Bad", "quantity": -1})
    assert response.status_code == 400

    body = client.delete(f"/api/work-orders/{wo_id}/materials/0").json()
    assert body["materials"] == []


def test_images_are_split_by_machine(client, work_order):
    machine_id = work_order["machines"][0]["machine_id"]
    body = client.post(f"/api/work-orders/{work_order['id']}/images", json={"images": [
        {"url": "https://files/a.png", "filename": "a.png"},
        {"url": "https://files/b.png", "filename": "b.png", "machine_id": machine_id},
    ]}).json()

    assert [img["filename"] for img in body["images"]] == ["a.png"]
    assert [img["filename"] for img in body["machines"][0]["images"]] == ["b.png"]


def test_finish_flow_and_read_only(client, work_order):
    wo_id = work_order["id"]
    client.post(f"/api/work-orders/{wo_id}/labor", json={"operator_name": "Ana"})

    response = client.post(f"/api/work-orders/{wo_id}/finish")
    assert response.status_code == 400

    fill_all(client, work_order)
    response = client.post(f"/api/work-orders/{wo_id}/finish")
    assert response.status_code == 400
    assert "signature" in response.json()["message"]

    client.put(f"/api/work-orders/{wo_id}/operator-signature",
               json={"operator_name": "Ana", "signature": SIGNATURE})
    response = client.post(f"/api/work-orders/{wo_id}/finish")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["completed_date"] is not None
    assert body["labor"][0]["is_active"] is False

    response = client.put(f"/api/work-orders/{wo_id}", json={"notes": "late edit"})
    assert response.status_code == 400
    assert response.json()["status_code"] == "305"

    response = client.post(f"/api/work-orders/{wo_id}/materials", json={"description": "Oil", "quantity": 1})
    assert response.status_code == 400


def test_finish_through_maintenance_save(client, work_order):
    machine = work_order["machines"][0]
    response = client.put(f"/api/work-orders/{work_order['id']}/maintenance", json={
        "maintenance_description": "Replaced grease",
        "machines": [{
            "machine_id": machine["machine_id"],
            "filled_operations": [{"operation_id": op_id, "value": "ok"} for op_id in machine["operation_ids"]],
        }],
        "materials": [{"description": "Grease", "quantity": 1, "unit_type": "kg"}],
        "operator_signature": {"operator_name": "Ana", "signature": SIGNATURE},
    })
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "in_progress"
    assert body["materials"][0]["unit"] == "kg"
    assert body["operator_signature"]["operator_name"] == "Ana"

    summary = client.get(f"/api/work-orders/{work_order['id']}/summary").json()
    assert summary["all_operations_completed"] is True
    assert summary["filled_operations_count"] == 3

    response = client.put(f"/api/work-orders/{work_order['id']}", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


def test_client_signature_only_on_completed_orders(client, work_order):
    wo_id = work_order["id"]
    payload = {"client_name": "Client", "signature": SIGNATURE}
    assert client.put(f"/api/work-orders/{wo_id}/client-signature", json=payload).status_code == 400

    fill_all(client, work_order)
    client.put(f"/api/work-orders/{wo_id}/operator-signature",
               json={"operator_name": "Ana", "signature": SIGNATURE})
    client.post(f"/api/work-orders/{wo_id}/finish")

    body = client.put(f"/api/work-orders/{wo_id}/client-signature", json=payload).json()
    assert body["client_signature"]["client_name"] == "Client"

    body = client.delete(f"/api/work-orders/{wo_id}/client-signature").json()
    assert body["client_signature"] is None


def test_range_used_by_work_order_cannot_be_deleted(client, setup, work_order):
    range_id = setup["range"]["id"]
    response = client.delete(f"/api/maintenance-ranges/{range_id}")
    assert response.status_code == 400
    assert response.json()["data"] == {"work_orders_count": 1}

    response = client.post("/api/maintenance-ranges/bulk-delete", json={"ids": [range_id]})
    assert response.status_code == 400
    assert response.json()["data"]["work_orders_count"] == 1


def test_list_filters_overview_and_lookups(client, make_work_order):
    make_work_order(description="pump service")
    make_work_order(type="corrective", description="broken belt")
    third = make_work_order(description="filter swap")
    client.put(f"/api/work-orders/{third['id']}", json={"status": "in_progress"})

    body = client.get("/api/work-orders", params={"type": "corrective"}).json()
    assert [wo["description"] for wo in body["items"]] == ["broken belt"]

    body = client.get("/api/work-orders", params={"status": "pending", "limit": 1}).json()
    assert body["total_items"] == 2
    assert body["total_pages"] == 2
    assert len(body["items"]) == 1

    assert client.get("/api/work-orders", params={"search": "pump"}).json()["total_items"] == 1

    overview = client.get("/api/work-orders/overview").json()
    assert overview == {
        "total_work_orders": 3, "pending": 2, "in_progress": 1, "completed": 0,
        "preventive": 2, "corrective": 1,
    }

    statuses = client.get("/api/work-orders/status-lookup").json()
    assert [s["id"] for s in statuses] == ["pending", "in_progress", "completed"]


def test_bulk_delete_is_all_or_nothing(client, work_order, make_work_order):
    fresh = make_work_order(description="fresh")
    fill_all(client, work_order)

    response = client.post("/api/work-orders/bulk-delete", json={"ids": [fresh["id"], work_order["id"]]})
    assert response.status_code == 400
    assert response.json()["data"]["blocked_count"] == 1
    assert client.get(f"/api/work-orders/{fresh['id']}").status_code == 200

    response = client.post("/api/work-orders/bulk-delete", json={"ids": [fresh["id"]]})
    assert response.json()["deleted_count"] == 1


def test_other_company_cannot_touch_work_order(client, work_order, other_headers):
    response = client.get(f"/api/work-orders/{work_order['id']}", headers=other_headers)
    assert response.status_code == 404
    response = client.delete(f"/api/work-orders/{work_order['id']}", headers=other_headers)
    assert response.status_code == 404
