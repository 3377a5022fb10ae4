# app/crud/maintenance_assets/work_orders_crud.py
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate
from shared.utils.app_status_code import AppStatusCode
from ...enum.maintenance_enum import MaintenanceType, WorkOrderStatus
from ...models.maintenance_assets.machines import Machine, MachineMaintenanceRange
from ...models.maintenance_assets.maintenance_ranges import MaintenanceRange
from ...models.maintenance_assets.operations import Operation
from ...models.maintenance_assets.work_orders import WorkOrder
from ...models.space_sites.locations import Location
from ...schemas.maintenance_assets.work_orders_schemas import (
    ClientSignatureIn, FilledOperationIn, ImageIn, MaintenanceSave, MaterialIn, MaterialUpdate,
    OperatorSignatureIn, WorkOrderCreate, WorkOrderMachineIn, WorkOrderOut, WorkOrderRequest,
    WorkOrderUpdate)
from ...services import maintenance_work as work
from ...services.operation_aggregation import build_work_order_machine, sort_operations
from .operations_crud import load_company_operations

logger = logging.getLogger(__name__)

STATE_FIELDS = ("status", "machines", "filled_operations", "labor", "materials", "images",
                "operator_signature", "client_signature", "completed_date")


# ---------------- Helpers ----------------

def work_order_state(work_order: WorkOrder) -> Dict[str, Any]:
    """Plain dict view of the row for the maintenance_work functions."""
    return {field: getattr(work_order, field) for field in STATE_FIELDS}


def apply_rule(func_, *args, **kwargs):
    try:
        return func_(*args, **kwargs)
    except work.MaintenanceRuleError as exc:
        logger.warning("Rejected work order change: %s", exc)
        return error_response(message=str(exc), status_code=AppStatusCode.OPERATION_ERROR)


def ensure_editable(work_order: WorkOrder):
    if work_order.status == WorkOrderStatus.completed.value:
        return error_response(
            message="Completed work orders cannot be modified",
            status_code=AppStatusCode.READ_ONLY_RECORD
        )


def ensure_completed(work_order: WorkOrder):
    if work_order.status != WorkOrderStatus.completed.value:
        return error_response(
            message="Client signature can only be changed on completed work orders",
            status_code=AppStatusCode.STATUS_TRANSITION_INVALID
        )


def get_work_order_or_404(db: Session, company_id: UUID, work_order_id: UUID) -> WorkOrder:
    work_order = db.query(WorkOrder).filter(
        WorkOrder.id == work_order_id,
        WorkOrder.company_id == company_id
    ).first()
    if not work_order:
        return not_found_response("Work order")
    return work_order


def _validate_location(db: Session, company_id: UUID, location_id: Optional[UUID]):
    if location_id and not db.query(Location.id).filter(
            Location.id == location_id, Location.company_id == company_id).first():
        return error_response(message="Location not found", status_code=AppStatusCode.INVALID_INPUT)


def _ensure_unique_code(db: Session, company_id: UUID, custom_code: Optional[str], exclude_id=None):
    if not custom_code:
        return
    query = db.query(WorkOrder.id).filter(
        WorkOrder.company_id == company_id,
        WorkOrder.custom_code == custom_code
    )
    if exclude_id:
        query = query.filter(WorkOrder.id != exclude_id)
    if query.first():
        return error_response(
            message=f"Work order code '{custom_code}' is already in use",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def build_machines(db: Session, company_id: UUID, work_order_type: MaintenanceType,
                   machines_in: List[WorkOrderMachineIn]) -> List[Dict[str, Any]]:
    machine_ids = [m.machine_id for m in machines_in]
    if len(set(machine_ids)) != len(machine_ids):
        return error_response(
            message="A machine can only appear once in a work order",
            status_code=AppStatusCode.INVALID_INPUT
        )
    if not machine_ids:
        return []

    machines = db.query(Machine).options(
        selectinload(Machine.operations),
        selectinload(Machine.range_links)
        .joinedload(MachineMaintenanceRange.maintenance_range)
        .selectinload(MaintenanceRange.operations),
    ).filter(Machine.id.in_(machine_ids), Machine.company_id == company_id).all()
    if len(machines) != len(machine_ids):
        return error_response(
            message="One or more machines not found",
            status_code=AppStatusCode.INVALID_INPUT
        )

    by_id = {m.id: m for m in machines}
    documents = []
    for machine_in in machines_in:
        additional = sort_operations(load_company_operations(db, company_id, machine_in.operation_ids))
        documents.append(build_work_order_machine(
            by_id[machine_in.machine_id], work_order_type, additional,
            machine_in.maintenance_description))
    return documents


def work_order_to_out(db: Session, work_order: WorkOrder) -> WorkOrderOut:
    state = work_order_state(work_order)
    documents = work_order.machines or []

    machine_ids = [m["machine_id"] for m in documents]
    operation_ids = {op_id for m in documents for op_id in m.get("operation_ids") or []}

    machines = {}
    if machine_ids:
        rows = db.query(Machine).options(joinedload(Machine.model)).filter(
            Machine.id.in_([UUID(mid) for mid in machine_ids])).all()
        machines = {str(m.id): m for m in rows}
    operations = {}
    if operation_ids:
        rows = db.query(Operation).filter(
            Operation.id.in_([UUID(oid) for oid in operation_ids])).all()
        operations = {str(op.id): op for op in rows}

    machines_out = []
    for document in documents:
        machine = machines.get(str(document["machine_id"]))
        machines_out.append({
            **document,
            "location": machine.location if machine else None,
            "model_name": machine.model.name if machine and machine.model else None,
            "operations": [{
                "operation_id": op_id,
                "name": operations[op_id].name,
                "description": operations[op_id].description,
                "type": operations[op_id].type,
                "order": operations[op_id].order,
            } for op_id in document.get("operation_ids") or [] if op_id in operations],
        })

    return WorkOrderOut.model_validate({
        **work_order.__dict__,
        "location_path": work_order.location.path if work_order.location else None,
        "machines": machines_out,
        "filled_operations": work_order.filled_operations or [],
        "labor": [{**entry, "hours": work.labor_hours(entry)} for entry in work_order.labor or []],
        "materials": work_order.materials or [],
        "images": work_order.images or [],
        "has_maintenance_data": work.has_maintenance_data(state),
        "can_delete": work.can_delete(state),
    })


def _save(db: Session, work_order: WorkOrder):
    db.commit()
    db.refresh(work_order)
    return work_order_to_out(db, work_order)


def _touch_status(work_order: WorkOrder):
    # any maintenance entry moves a pending order forward
    work_order.status = work.next_status_on_save(work_order.status).value


# ---------------- Listing ----------------

def build_work_order_filters(company_id: UUID, params: WorkOrderRequest):
    filters = [WorkOrder.company_id == company_id]

    if params.status:
        filters.append(WorkOrder.status == params.status.value)

    if params.type:
        filters.append(WorkOrder.type == params.type.value)

    if params.location_id:
        filters.append(or_(
            WorkOrder.location_id == params.location_id,
            WorkOrder.work_order_location_id == params.location_id
        ))

    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            WorkOrder.custom_code.ilike(search_term),
            WorkOrder.description.ilike(search_term),
            WorkOrder.assigned_to.ilike(search_term)
        ))

    return filters


def get_work_orders(db: Session, company_id: UUID, params: WorkOrderRequest):
    query = db.query(WorkOrder).options(joinedload(WorkOrder.location)).filter(
        *build_work_order_filters(company_id, params))
    return paginate(query, params, order_by=WorkOrder.created_at.desc(),
                    serializer=lambda wo: work_order_to_out(db, wo))


def get_work_orders_overview(db: Session, company_id: UUID):
    status_rows = db.query(WorkOrder.status, func.count(WorkOrder.id)).filter(
        WorkOrder.company_id == company_id).group_by(WorkOrder.status).all()
    type_rows = db.query(WorkOrder.type, func.count(WorkOrder.id)).filter(
        WorkOrder.company_id == company_id).group_by(WorkOrder.type).all()

    by_status = dict(status_rows)
    by_type = dict(type_rows)
    return {
        "total_work_orders": sum(by_status.values()),
        "pending": by_status.get(WorkOrderStatus.pending.value, 0),
        "in_progress": by_status.get(WorkOrderStatus.in_progress.value, 0),
        "completed": by_status.get(WorkOrderStatus.completed.value, 0),
        "preventive": by_type.get(MaintenanceType.preventive.value, 0),
        "corrective": by_type.get(MaintenanceType.corrective.value, 0),
    }


def get_work_order(db: Session, company_id: UUID, work_order_id: UUID):
    return work_order_to_out(db, get_work_order_or_404(db, company_id, work_order_id))


def get_maintenance_summary(db: Session, company_id: UUID, work_order_id: UUID):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    return work.maintenance_summary(work_order_state(work_order))


def work_order_status_lookup() -> List[Lookup]:
    return [Lookup(id=s.value, name=s.name.replace("_", " ").capitalize()) for s in WorkOrderStatus]


def work_order_type_lookup() -> List[Lookup]:
    return [Lookup(id=t.value, name=t.name.capitalize()) for t in MaintenanceType]


# ---------------- Create / Update ----------------

def create_work_order(db: Session, company_id: UUID, data: WorkOrderCreate):
    status = data.status or WorkOrderStatus.pending
    if status == WorkOrderStatus.completed:
        return error_response(
            message="A work order can only be completed by finishing it",
            status_code=AppStatusCode.STATUS_TRANSITION_INVALID
        )

    _validate_location(db, company_id, data.location_id)
    _validate_location(db, company_id, data.work_order_location_id)
    _ensure_unique_code(db, company_id, data.custom_code)

    work_order = WorkOrder(
        company_id=company_id,
        custom_code=data.custom_code,
        location_id=data.location_id,
        work_order_location_id=data.work_order_location_id,
        type=data.type.value,
        status=status.value,
        description=data.description,
        maintenance_description=data.maintenance_description,
        scheduled_date=data.scheduled_date,
        assigned_to=data.assigned_to,
        notes=data.notes,
        machines=build_machines(db, company_id, data.type, data.machines),
        filled_operations=[],
        labor=[],
        materials=[],
        images=[],
        properties=data.properties or {},
    )
    db.add(work_order)
    db.commit()
    db.refresh(work_order)
    logger.info("Created work order %s with %s machines", work_order.id, len(work_order.machines))
    return work_order_to_out(db, work_order)


def update_work_order(db: Session, company_id: UUID, work_order_id: UUID, data: WorkOrderUpdate):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)
    changes = data.model_dump(exclude_unset=True)
    state = work_order_state(work_order)

    for field in ("type", "description"):
        if field in changes and changes[field] is None:
            return error_response(
                message=f"{field} is required",
                status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR
            )

    new_type = data.type or MaintenanceType(work_order.type)
    type_changed = new_type.value != work_order.type
    machines_changed = data.machines is not None and \
        [str(m.machine_id) for m in data.machines] != [m["machine_id"] for m in work_order.machines or []]
    has_data = work.has_maintenance_data(state)
    if (machines_changed or type_changed) and has_data:
        logger.warning("Rejected machine change on work order %s with maintenance data", work_order.id)
        return error_response(
            message="Machines cannot be changed once maintenance data has been recorded",
            status_code=AppStatusCode.OPERATION_ERROR
        )

    if "location_id" in changes:
        _validate_location(db, company_id, changes["location_id"])
    if "work_order_location_id" in changes:
        _validate_location(db, company_id, changes["work_order_location_id"])
    if changes.get("custom_code"):
        _ensure_unique_code(db, company_id, changes["custom_code"], exclude_id=work_order.id)

    target_status = data.status
    if target_status is not None:
        apply_rule(work.ensure_transition, work_order.status, target_status)

    if not has_data and (data.machines is not None or type_changed):
        machines_in = data.machines if data.machines is not None else [
            WorkOrderMachineIn(
                machine_id=m["machine_id"],
                maintenance_description=m.get("maintenance_description"))
            for m in work_order.machines or []
        ]
        work_order.machines = build_machines(db, company_id, new_type, machines_in)

    for key in ("custom_code", "location_id", "work_order_location_id", "description",
                "maintenance_description", "scheduled_date", "assigned_to", "notes"):
        if key in changes:
            setattr(work_order, key, changes[key])
    if "properties" in changes:
        work_order.properties = changes["properties"] or {}
    work_order.type = new_type.value

    if target_status == WorkOrderStatus.completed:
        finished = apply_rule(work.finish, work_order_state(work_order))
        work_order.status = finished["status"]
        work_order.labor = finished["labor"]
        work_order.completed_date = changes.get("completed_date") or finished["completed_date"]
    elif target_status is not None:
        work_order.status = target_status.value
        if "completed_date" in changes:
            work_order.completed_date = changes["completed_date"]

    return _save(db, work_order)


# ---------------- Delete ----------------

def delete_work_order(db: Session, company_id: UUID, work_order_id: UUID):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    state = work_order_state(work_order)

    if not work.can_delete(state):
        logger.warning("Work order %s cannot be deleted (status %s)", work_order.id, work_order.status)
        return error_response(
            message="Only pending work orders without maintenance data can be deleted",
            status_code=AppStatusCode.OPERATION_ERROR,
            data={"status": work_order.status, "has_maintenance_data": work.has_maintenance_data(state)}
        )

    db.delete(work_order)
    db.commit()
    logger.info("Deleted work order %s", work_order_id)
    return {"message": "Work order deleted successfully"}


def bulk_delete_work_orders(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    work_orders = db.query(WorkOrder).filter(
        WorkOrder.id.in_(ids), WorkOrder.company_id == company_id).all()
    if len(work_orders) != len(ids):
        return error_response(message="Some work orders not found", status_code=AppStatusCode.NOT_FOUND)

    blocked = [wo for wo in work_orders if not work.can_delete(work_order_state(wo))]
    if blocked:
        return error_response(
            message="Only pending work orders without maintenance data can be deleted",
            status_code=AppStatusCode.OPERATION_ERROR,
            data={"blocked_count": len(blocked), "blocked_ids": [str(wo.id) for wo in blocked]}
        )

    for work_order in work_orders:
        db.delete(work_order)
    db.commit()

    logger.info("Bulk deleted %s work orders", len(work_orders))
    return {
        "message": f"{len(work_orders)} work orders deleted successfully",
        "deleted_count": len(work_orders),
    }


# ---------------- Maintenance work ----------------

def _filled_entries(entries: List[FilledOperationIn]) -> List[Dict[str, Any]]:
    return [{"operation_id": str(e.operation_id), "value": e.value, "description": e.description}
            for e in entries]


def _image_records(images: List[ImageIn], uploaded_by: Optional[str]) -> List[Dict[str, Any]]:
    stamp = work.to_iso(work.utc_now())
    return [{
        "url": image.url,
        "filename": image.filename,
        "uploaded_at": stamp,
        "uploaded_by": uploaded_by,
        "machine_id": str(image.machine_id) if image.machine_id else None,
    } for image in images]


def _signature_record(signature, **names) -> Dict[str, Any]:
    return {**names, "signature": signature.signature, "signed_at": work.to_iso(work.utc_now())}


def save_maintenance(db: Session, company_id: UUID, work_order_id: UUID,
                     data: MaintenanceSave, user_name: Optional[str] = None):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)
    state = work_order_state(work_order)

    for machine_in in data.machines:
        state["machines"] = apply_rule(
            work.fill_machine_operations, state, machine_in.machine_id,
            _filled_entries(machine_in.filled_operations), user_name)
        if machine_in.maintenance_description is not None:
            for machine in state["machines"]:
                if machine["machine_id"] == str(machine_in.machine_id):
                    machine["maintenance_description"] = machine_in.maintenance_description

    if data.materials is not None:
        materials = []
        for material in data.materials:
            materials = apply_rule(work.add_material, materials, material.description,
                                   material.quantity, material.unit_type, material.unit)
        state["materials"] = materials

    if data.images:
        state["images"], state["machines"] = apply_rule(
            work.attach_images, state, _image_records(data.images, user_name))

    if data.operator_signature is not None:
        state["operator_signature"] = _signature_record(
            data.operator_signature,
            operator_name=data.operator_signature.operator_name,
            operator_id=data.operator_signature.operator_id)

    if data.maintenance_description is not None:
        work_order.maintenance_description = data.maintenance_description

    work_order.machines = state["machines"]
    work_order.materials = state["materials"]
    work_order.images = state["images"]
    work_order.operator_signature = state["operator_signature"]
    _touch_status(work_order)
    return _save(db, work_order)


def finish_work_order(db: Session, company_id: UUID, work_order_id: UUID):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    finished = apply_rule(work.finish, work_order_state(work_order))
    work_order.status = finished["status"]
    work_order.labor = finished["labor"]
    work_order.completed_date = finished["completed_date"]
    logger.info("Finished work order %s", work_order.id)
    return _save(db, work_order)


def fill_machine_operations(db: Session, company_id: UUID, work_order_id: UUID, machine_id: UUID,
                            entries: List[FilledOperationIn], user_name: Optional[str] = None):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.machines = apply_rule(
        work.fill_machine_operations, work_order_state(work_order), machine_id,
        _filled_entries(entries), user_name)
    _touch_status(work_order)
    return _save(db, work_order)


def start_labor(db: Session, company_id: UUID, work_order_id: UUID, operator_name: str):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.labor = apply_rule(work.start_labor, work_order.labor, operator_name)
    _touch_status(work_order)
    return _save(db, work_order)


def stop_labor(db: Session, company_id: UUID, work_order_id: UUID, index: int):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.labor = apply_rule(work.stop_labor, work_order.labor, index)
    return _save(db, work_order)


def add_material(db: Session, company_id: UUID, work_order_id: UUID, material: MaterialIn):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.materials = apply_rule(
        work.add_material, work_order.materials, material.description,
        material.quantity, material.unit_type, material.unit)
    _touch_status(work_order)
    return _save(db, work_order)


def update_material(db: Session, company_id: UUID, work_order_id: UUID, index: int, material: MaterialUpdate):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.materials = apply_rule(
        work.update_material, work_order.materials, index, material.model_dump(exclude_unset=True))
    return _save(db, work_order)


def remove_material(db: Session, company_id: UUID, work_order_id: UUID, index: int):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.materials = apply_rule(work.remove_material, work_order.materials, index)
    return _save(db, work_order)


def add_images(db: Session, company_id: UUID, work_order_id: UUID, images: List[ImageIn],
               user_name: Optional[str] = None):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.images, work_order.machines = apply_rule(
        work.attach_images, work_order_state(work_order), _image_records(images, user_name))
    _touch_status(work_order)
    return _save(db, work_order)


def set_operator_signature(db: Session, company_id: UUID, work_order_id: UUID, data: OperatorSignatureIn):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_editable(work_order)

    work_order.operator_signature = _signature_record(
        data, operator_name=data.operator_name, operator_id=data.operator_id)
    return _save(db, work_order)


def set_client_signature(db: Session, company_id: UUID, work_order_id: UUID, data: ClientSignatureIn):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_completed(work_order)

    work_order.client_signature = _signature_record(
        data, client_name=data.client_name, client_id=data.client_id)
    logger.info("Client signed work order %s", work_order.id)
    return _save(db, work_order)


def remove_client_signature(db: Session, company_id: UUID, work_order_id: UUID):
    work_order = get_work_order_or_404(db, company_id, work_order_id)
    ensure_completed(work_order)

    work_order.client_signature = None
    return _save(db, work_order)
