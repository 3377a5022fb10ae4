"""Which operations apply to a machine for a given work order type.

Operations come from three places: the machine's maintenance ranges of the
matching type, the operations assigned directly to the machine, and the
operations picked by hand on the work order. They are merged by id, first
source wins, so range entries are never shadowed by the other two.
"""
from typing import Any, Dict, Iterable, List, Optional

from ..enum.maintenance_enum import OperationSource


def _value(value):
    return getattr(value, "value", value)


def _op_id(item) -> str:
    return str(getattr(item, "id", item))


def operation_sort_key(operation):
    order = getattr(operation, "order", None)
    return (order is None, order if order is not None else 0, (operation.name or "").lower())


def sort_operations(operations: Iterable[Any]) -> List[Any]:
    return sorted(operations, key=operation_sort_key)


def matching_ranges(maintenance_ranges: Iterable[Any], work_order_type) -> List[Any]:
    wanted = _value(work_order_type)
    return [mr for mr in maintenance_ranges if _value(mr.type) == wanted]


def _entry(item, source: OperationSource, maintenance_range_id=None) -> Dict[str, Any]:
    entry = {
        "operation_id": _op_id(item),
        "source": source.value,
        "maintenance_range_id": str(maintenance_range_id) if maintenance_range_id else None,
    }
    # bare ids carry no details
    if hasattr(item, "name"):
        entry.update({
            "name": item.name,
            "description": getattr(item, "description", None),
            "type": _value(getattr(item, "type", None)),
            "order": getattr(item, "order", None),
        })
    return entry


def aggregate_machine_operations(machine, work_order_type,
                                 additional: Iterable[Any] = ()) -> List[Dict[str, Any]]:
    seen = set()
    result = []

    def emit(item, source, maintenance_range_id=None):
        op_id = _op_id(item)
        if op_id in seen:
            return
        seen.add(op_id)
        result.append(_entry(item, source, maintenance_range_id))

    for maintenance_range in matching_ranges(machine.maintenance_ranges, work_order_type):
        for operation in sort_operations(maintenance_range.operations):
            emit(operation, OperationSource.maintenance_range, maintenance_range.id)

    for operation in sort_operations(machine.operations):
        emit(operation, OperationSource.machine)

    for item in additional:
        emit(item, OperationSource.additional)

    return result


def build_work_order_machine(machine, work_order_type,
                             additional: Iterable[Any] = (),
                             maintenance_description: Optional[str] = None) -> Dict[str, Any]:
    """Embedded machine document for a work order."""
    operations = aggregate_machine_operations(machine, work_order_type, additional)
    return {
        "machine_id": str(machine.id),
        "maintenance_range_ids": [
            str(mr.id) for mr in matching_ranges(machine.maintenance_ranges, work_order_type)
        ],
        "operation_ids": [op["operation_id"] for op in operations],
        "filled_operations": [],
        "images": [],
        "maintenance_description": maintenance_description,
    }
