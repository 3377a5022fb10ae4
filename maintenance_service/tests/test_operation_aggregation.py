from types import SimpleNamespace

from maintenance_service.app.services.operation_aggregation import (
    aggregate_machine_operations, build_work_order_machine, sort_operations)


def op(op_id, name, order=None):
    return SimpleNamespace(id=op_id, name=name, order=order, description=None, type="boolean")


def maintenance_range(range_id, range_type, operations):
    return SimpleNamespace(id=range_id, type=range_type, operations=operations)


def machine(ranges=(), operations=(), machine_id="m1"):
    return SimpleNamespace(id=machine_id, maintenance_ranges=list(ranges), operations=list(operations))


def test_sort_puts_ordered_operations_first():
    ops = [op("a", "Zeta"), op("b", "Alpha"), op("c", "Mid", order=2), op("d", "First", order=1)]
    assert [o.id for o in sort_operations(ops)] == ["d", "c", "b", "a"]


def test_only_ranges_of_the_work_order_type_contribute():
    preventive = maintenance_range("r1", "preventive", [op("o1", "Grease")])
    corrective = maintenance_range("r2", "corrective", [op("o2", "Replace belt")])
    result = aggregate_machine_operations(machine([preventive, corrective]), "preventive")

    assert [entry["operation_id"] for entry in result] == ["o1"]
    assert result[0]["source"] == "maintenance_range"
    assert result[0]["maintenance_range_id"] == "r1"


def test_range_entry_wins_over_machine_and_additional_duplicates():
    shared = op("o1", "Grease")
    mr = maintenance_range("r1", "preventive", [shared])
    m = machine([mr], operations=[shared, op("o2", "Inspect")])

    result = aggregate_machine_operations(m, "preventive", additional=["o1", "o2", "o3"])

    assert [(e["operation_id"], e["source"]) for e in result] == [
        ("o1", "maintenance_range"),
        ("o2", "machine"),
        ("o3", "additional"),
    ]


def test_direct_machine_operations_apply_to_corrective_orders():
    m = machine([maintenance_range("r1", "preventive", [op("o1", "Grease")])],
                operations=[op("o2", "Inspect")])
    result = aggregate_machine_operations(m, "corrective")
    assert [(e["operation_id"], e["source"]) for e in result] == [("o2", "machine")]


def test_same_operation_in_two_ranges_is_emitted_once():
    shared = op("o1", "Grease")
    m = machine([
        maintenance_range("r1", "preventive", [shared]),
        maintenance_range("r2", "preventive", [shared, op("o2", "Clean")]),
    ])
    result = aggregate_machine_operations(m, "preventive")
    assert [e["operation_id"] for e in result] == ["o1", "o2"]
    assert result[0]["maintenance_range_id"] == "r1"


def test_build_work_order_machine_document():
    m = machine([
        maintenance_range("r1", "preventive", [op("o1", "Grease")]),
        maintenance_range("r2", "corrective", [op("o2", "Fix")]),
    ], machine_id="m9")

    document = build_work_order_machine(m, "preventive", additional=[op("o3", "Extra")])

    assert document == {
        "machine_id": "m9",
        "maintenance_range_ids": ["r1"],
        "operation_ids": ["o1", "o3"],
        "filled_operations": [],
        "images": [],
        "maintenance_description": None,
    }
