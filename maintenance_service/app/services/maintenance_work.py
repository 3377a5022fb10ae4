"""Work order maintenance state.

Work orders are handled here as plain dicts shaped like the JSON stored in
the row (machines, labor, materials, images, signatures). Every function
returns new lists and dicts; callers assign the result back to the row.
"""
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..enum.maintenance_enum import WorkOrderStatus, WORK_ORDER_STATUS_RANK

DEFAULT_UNIT_TYPE = "pcs"


class MaintenanceRuleError(ValueError):
    """A maintenance action that the work order state does not allow."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def parse_datetime(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_filled_value(value) -> bool:
    # False and 0 are real answers
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True


def _status(value) -> WorkOrderStatus:
    return WorkOrderStatus(getattr(value, "value", value))


# ---------------- Status ----------------

def next_status_on_save(status) -> WorkOrderStatus:
    current = _status(status)
    if current == WorkOrderStatus.pending:
        return WorkOrderStatus.in_progress
    return current


def can_transition(current, target) -> bool:
    return WORK_ORDER_STATUS_RANK[_status(target)] >= WORK_ORDER_STATUS_RANK[_status(current)]


def ensure_transition(current, target):
    if not can_transition(current, target):
        raise MaintenanceRuleError(
            f"Cannot change status from {_status(current).value} to {_status(target).value}")


def is_completed(work_order: Dict[str, Any]) -> bool:
    return _status(work_order.get("status") or WorkOrderStatus.pending) == WorkOrderStatus.completed


def ensure_editable(work_order: Dict[str, Any]):
    if is_completed(work_order):
        raise MaintenanceRuleError("Completed work orders cannot be modified")


# ---------------- Filled operations ----------------

def find_machine(work_order: Dict[str, Any], machine_id) -> Dict[str, Any]:
    for machine in work_order.get("machines") or []:
        if str(machine.get("machine_id")) == str(machine_id):
            return machine
    raise MaintenanceRuleError(f"Machine {machine_id} is not part of this work order")


def fill_operation(work_order_machine: Dict[str, Any], operation_id, value,
                   description: Optional[str] = None, filled_by: Optional[str] = None,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    operation_id = str(operation_id)
    if operation_id not in [str(op_id) for op_id in work_order_machine.get("operation_ids") or []]:
        raise MaintenanceRuleError(
            f"Operation {operation_id} does not apply to machine {work_order_machine.get('machine_id')}")

    machine = copy.deepcopy(work_order_machine)
    record = {
        "operation_id": operation_id,
        "value": value,
        "description": description,
        "filled_at": to_iso(now or utc_now()),
        "filled_by": filled_by,
    }

    filled = [fo for fo in machine.get("filled_operations") or []
              if str(fo.get("operation_id")) != operation_id]
    filled.append(record)
    machine["filled_operations"] = filled
    return machine


def fill_machine_operations(work_order: Dict[str, Any], machine_id, entries: List[Dict[str, Any]],
                            filled_by: Optional[str] = None,
                            now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Apply several filled values to one machine, returns the new machines list."""
    machines = []
    target = str(find_machine(work_order, machine_id)["machine_id"])
    for machine in work_order.get("machines") or []:
        if str(machine.get("machine_id")) == target:
            for entry in entries:
                machine = fill_operation(
                    machine, entry["operation_id"], entry.get("value"),
                    entry.get("description"), filled_by, now)
        machines.append(copy.deepcopy(machine))
    return machines


def _filled_value(work_order: Dict[str, Any], machine: Dict[str, Any], operation_id: str):
    for fo in machine.get("filled_operations") or []:
        if str(fo.get("operation_id")) == operation_id:
            return True, fo.get("value")
    # older orders keep filled values at work order level
    for fo in work_order.get("filled_operations") or []:
        if str(fo.get("operation_id")) == operation_id and \
                str(fo.get("machine_id")) == str(machine.get("machine_id")):
            return True, fo.get("value")
    return False, None


def are_all_operations_completed(work_order: Dict[str, Any]) -> bool:
    for machine in work_order.get("machines") or []:
        for operation_id in machine.get("operation_ids") or []:
            found, value = _filled_value(work_order, machine, str(operation_id))
            if not found or not is_filled_value(value):
                return False
    return True


# ---------------- Labor ----------------

def start_labor(labor: List[Dict[str, Any]], operator_name: str,
                now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    if not operator_name or not operator_name.strip():
        raise MaintenanceRuleError("Operator name is required")
    entries = copy.deepcopy(labor or [])
    entries.append({
        "operator_name": operator_name.strip(),
        "start_time": to_iso(now or utc_now()),
        "end_time": None,
        "is_active": True,
    })
    return entries


def stop_labor(labor: List[Dict[str, Any]], index: int,
               now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    entries = copy.deepcopy(labor or [])
    if index < 0 or index >= len(entries):
        raise MaintenanceRuleError(f"Labor entry {index} does not exist")
    entry = entries[index]
    if not entry.get("is_active"):
        raise MaintenanceRuleError(f"Labor entry {index} is not running")
    entry["end_time"] = to_iso(now or utc_now())
    entry["is_active"] = False
    return entries


def stop_active_labor(labor: List[Dict[str, Any]],
                      now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    stamp = to_iso(now or utc_now())
    entries = copy.deepcopy(labor or [])
    for entry in entries:
        if entry.get("is_active"):
            entry["end_time"] = stamp
            entry["is_active"] = False
    return entries


def labor_hours(entry: Dict[str, Any]) -> float:
    start = parse_datetime(entry.get("start_time"))
    end = parse_datetime(entry.get("end_time"))
    if start is None or end is None:
        return 0.0
    return round((end - start).total_seconds() / 3600, 2)


def total_labor_hours(labor: List[Dict[str, Any]]) -> float:
    return round(sum(labor_hours(entry) for entry in labor or []), 2)


# ---------------- Materials ----------------

def _check_quantity(quantity):
    if quantity is None or quantity < 0:
        raise MaintenanceRuleError("Quantity must be zero or greater")


def add_material(materials: List[Dict[str, Any]], description: str, quantity: float,
                 unit_type: Optional[str] = None, unit: Optional[str] = None) -> List[Dict[str, Any]]:
    if not description or not description.strip():
        raise MaintenanceRuleError("Material description is required")
    _check_quantity(quantity)
    unit_type = unit_type or DEFAULT_UNIT_TYPE
    entries = copy.deepcopy(materials or [])
    entries.append({
        "description": description.strip(),
        "unit_type": unit_type,
        "unit": unit or unit_type,
        "quantity": quantity,
    })
    return entries


def update_material(materials: List[Dict[str, Any]], index: int,
                    changes: Dict[str, Any]) -> List[Dict[str, Any]]:
    entries = copy.deepcopy(materials or [])
    if index < 0 or index >= len(entries):
        raise MaintenanceRuleError(f"Material {index} does not exist")

    entry = entries[index]
    for field in ("description", "quantity", "unit"):
        if changes.get(field) is not None:
            entry[field] = changes[field]
    if changes.get("unit_type") is not None:
        entry["unit_type"] = changes["unit_type"]
        entry["unit"] = changes["unit_type"]

    _check_quantity(entry.get("quantity"))
    return entries


def remove_material(materials: List[Dict[str, Any]], index: int) -> List[Dict[str, Any]]:
    entries = copy.deepcopy(materials or [])
    if index < 0 or index >= len(entries):
        raise MaintenanceRuleError(f"Material {index} does not exist")
    del entries[index]
    return entries


# ---------------- Images ----------------

def split_images(images: List[Dict[str, Any]]):
    """Split uploaded images into work order level and per machine lists."""
    work_order_images = []
    machine_images: Dict[str, List[Dict[str, Any]]] = {}
    for image in images or []:
        image = dict(image)
        machine_id = image.pop("machine_id", None)
        if machine_id:
            machine_images.setdefault(str(machine_id), []).append(image)
        else:
            work_order_images.append(image)
    return work_order_images, machine_images


def attach_images(work_order: Dict[str, Any], images: List[Dict[str, Any]]):
    """Returns (images, machines) with the new images appended where they belong."""
    work_order_images, machine_images = split_images(images)
    for machine_id in machine_images:
        find_machine(work_order, machine_id)

    machines = copy.deepcopy(work_order.get("machines") or [])
    for machine in machines:
        machine["images"] = (machine.get("images") or []) + \
            machine_images.get(str(machine.get("machine_id")), [])

    return copy.deepcopy(work_order.get("images") or []) + work_order_images, machines


# ---------------- Data checks ----------------

def has_maintenance_data(work_order: Dict[str, Any]) -> bool:
    if work_order.get("filled_operations") or work_order.get("labor") \
            or work_order.get("materials") or work_order.get("images"):
        return True
    for machine in work_order.get("machines") or []:
        if machine.get("filled_operations") or machine.get("images"):
            return True
    return False


def can_delete(work_order: Dict[str, Any]) -> bool:
    status = _status(work_order.get("status") or WorkOrderStatus.pending)
    return status == WorkOrderStatus.pending and not has_maintenance_data(work_order)


def finish(work_order: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Close a work order: every operation filled and the operator signed."""
    ensure_editable(work_order)
    if not are_all_operations_completed(work_order):
        raise MaintenanceRuleError("All operations must be completed before finishing the work order")
    signature = work_order.get("operator_signature") or {}
    if not signature.get("signature"):
        raise MaintenanceRuleError("Operator signature is required to finish the work order")

    now = now or utc_now()
    return {
        "status": WorkOrderStatus.completed.value,
        "labor": stop_active_labor(work_order.get("labor") or [], now),
        "completed_date": work_order.get("completed_date") or now,
    }


def maintenance_summary(work_order: Dict[str, Any]) -> Dict[str, Any]:
    machines = work_order.get("machines") or []
    filled = len(work_order.get("filled_operations") or []) + sum(
        len(m.get("filled_operations") or []) for m in machines)
    total_operations = sum(len(m.get("operation_ids") or []) for m in machines)
    images = len(work_order.get("images") or []) + sum(
        len(m.get("images") or []) for m in machines)
    labor = work_order.get("labor") or []

    return {
        "machines_count": len(machines),
        "operations_count": total_operations,
        "filled_operations_count": filled,
        "labor_count": len(labor),
        "active_labor_count": sum(1 for entry in labor if entry.get("is_active")),
        "materials_count": len(work_order.get("materials") or []),
        "images_count": images,
        "total_labor_hours": total_labor_hours(labor),
        "all_operations_completed": are_all_operations_completed(work_order),
        "has_maintenance_data": has_maintenance_data(work_order),
    }
