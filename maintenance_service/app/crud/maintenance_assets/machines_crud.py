import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate
from shared.utils.app_status_code import AppStatusCode
from ...enum.maintenance_enum import MaintenanceType
from ...models.maintenance_assets.machine_models import MachineModel
from ...models.maintenance_assets.machines import Machine, MachineMaintenanceRange
from ...models.maintenance_assets.maintenance_ranges import MaintenanceRange
from ...models.space_sites.locations import Location
from ...schemas.maintenance_assets.machines_schemas import (
    MachineCreate, MachineOut, MachineRequest, MachineUpdate)
from ...services.operation_aggregation import aggregate_machine_operations, sort_operations
from .maintenance_ranges_crud import range_to_out
from .operations_crud import load_company_operations

logger = logging.getLogger(__name__)


def _machine_query(db: Session):
    return db.query(Machine).options(
        joinedload(Machine.model),
        joinedload(Machine.location_ref),
        selectinload(Machine.operations),
        selectinload(Machine.range_links)
        .joinedload(MachineMaintenanceRange.maintenance_range)
        .selectinload(MaintenanceRange.operations),
    )


def build_machine_filters(company_id: UUID, params: MachineRequest):
    filters = [Machine.company_id == company_id]

    if params.location_id:
        filters.append(Machine.location_id == params.location_id)

    if params.model_id:
        filters.append(Machine.model_id == params.model_id)

    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            Machine.location.ilike(search_term),
            Machine.description.ilike(search_term),
            MachineModel.name.ilike(search_term),
            MachineModel.brand.ilike(search_term)
        ))

    return filters


def get_machine_or_404(db: Session, company_id: UUID, machine_id: UUID) -> Machine:
    machine = _machine_query(db).filter(
        Machine.id == machine_id,
        Machine.company_id == company_id
    ).first()
    if not machine:
        return not_found_response("Machine")
    return machine


def machine_to_out(machine: Machine) -> MachineOut:
    operations = sort_operations(machine.operations)
    return MachineOut.model_validate({
        **machine.__dict__,
        "model": machine.model,
        "location_ref": machine.location_ref,
        "maintenance_range_ids": machine.maintenance_range_ids,
        "maintenance_ranges": [range_to_out(mr) for mr in machine.maintenance_ranges],
        "operation_ids": [op.id for op in operations],
        "operations": operations,
    })


def get_machines(db: Session, company_id: UUID, params: MachineRequest):
    query = _machine_query(db).join(MachineModel, Machine.model_id == MachineModel.id) \
        .filter(*build_machine_filters(company_id, params))
    return paginate(query, params, order_by=Machine.location, serializer=machine_to_out)


def get_machine(db: Session, company_id: UUID, machine_id: UUID):
    return machine_to_out(get_machine_or_404(db, company_id, machine_id))


def machine_lookup(db: Session, company_id: UUID, location_id: Optional[UUID] = None) -> List[Lookup]:
    query = db.query(Machine).options(joinedload(Machine.model)).filter(
        Machine.company_id == company_id)
    if location_id:
        query = query.filter(Machine.location_id == location_id)
    return [
        Lookup(id=m.id, name=f"{m.model.name if m.model else ''} - {m.location}".strip(" -"))
        for m in query.order_by(Machine.location).all()
    ]


def get_machine_operations(db: Session, company_id: UUID, machine_id: UUID, work_order_type: MaintenanceType):
    machine = get_machine_or_404(db, company_id, machine_id)
    return aggregate_machine_operations(machine, work_order_type)


# ---------------- Validation ----------------

def _load_model(db: Session, company_id: UUID, model_id: UUID) -> MachineModel:
    model = db.query(MachineModel).filter(
        MachineModel.id == model_id, MachineModel.company_id == company_id).first()
    if not model:
        return error_response(message="Machine model not found", status_code=AppStatusCode.INVALID_INPUT)
    return model


def _load_location(db: Session, company_id: UUID, location_id: Optional[UUID]) -> Optional[Location]:
    if not location_id:
        return None
    location = db.query(Location).filter(
        Location.id == location_id, Location.company_id == company_id).first()
    if not location:
        return error_response(message="Location not found", status_code=AppStatusCode.INVALID_INPUT)
    return location


def _load_ranges(db: Session, company_id: UUID, range_ids: List[UUID]) -> List[MaintenanceRange]:
    range_ids = list(dict.fromkeys(range_ids or []))
    if not range_ids:
        return []
    ranges = db.query(MaintenanceRange).options(selectinload(MaintenanceRange.operations)).filter(
        MaintenanceRange.id.in_(range_ids), MaintenanceRange.company_id == company_id).all()
    if len(ranges) != len(range_ids):
        return error_response(
            message="One or more maintenance ranges not found",
            status_code=AppStatusCode.INVALID_INPUT
        )

    if len({mr.type for mr in ranges}) > 1:
        return error_response(
            message="All maintenance ranges of a machine must have the same type",
            status_code=AppStatusCode.INVALID_INPUT
        )

    by_id = {mr.id: mr for mr in ranges}
    return [by_id[range_id] for range_id in range_ids]


def _resolve_operations(db: Session, company_id: UUID, ranges: List[MaintenanceRange],
                        operation_ids: List[UUID], explicit: bool):
    is_corrective = bool(ranges) and ranges[0].type == MaintenanceType.corrective.value
    if is_corrective:
        if explicit and operation_ids:
            return error_response(
                message="Machines with corrective maintenance ranges cannot have direct operations",
                status_code=AppStatusCode.INVALID_INPUT
            )
        return []

    operations = load_company_operations(db, company_id, operation_ids)
    in_ranges = {op.id for mr in ranges for op in mr.operations}
    overlap = [op.name for op in operations if op.id in in_ranges]
    if overlap:
        return error_response(
            message=f"Operations already included in the machine's maintenance ranges: {', '.join(overlap)}",
            status_code=AppStatusCode.INVALID_INPUT
        )
    return operations


def _ensure_unique_placement(db: Session, company_id: UUID, model_id: UUID,
                             location_id: Optional[UUID], location_label: str, exclude_id=None):
    query = db.query(Machine).filter(
        Machine.company_id == company_id,
        Machine.model_id == model_id
    )
    if location_id:
        query = query.filter(Machine.location_id == location_id)
    else:
        query = query.filter(
            Machine.location_id.is_(None),
            func.lower(Machine.location) == location_label.lower()
        )
    if exclude_id:
        query = query.filter(Machine.id != exclude_id)
    if query.first():
        return error_response(
            message="A machine with this model already exists in this location",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def _set_ranges(machine: Machine, ranges: List[MaintenanceRange]):
    # existing links are reused so a kept range keeps its row
    existing = {link.maintenance_range_id: link for link in machine.range_links}
    links = []
    for position, mr in enumerate(ranges):
        link = existing.get(mr.id) or MachineMaintenanceRange(maintenance_range=mr)
        link.position = position
        links.append(link)
    machine.range_links = links


# ---------------- Create / Update ----------------

def create_machine(db: Session, company_id: UUID, data: MachineCreate):
    _load_model(db, company_id, data.model_id)
    location = _load_location(db, company_id, data.location_id)

    label = data.location or (location.path if location else None)
    if not label:
        return error_response(
            message="Location is required",
            status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR
        )

    _ensure_unique_placement(db, company_id, data.model_id, data.location_id, label)
    ranges = _load_ranges(db, company_id, data.maintenance_range_ids)
    operations = _resolve_operations(
        db, company_id, ranges, data.operation_ids, explicit=bool(data.operation_ids))

    machine = Machine(
        company_id=company_id,
        model_id=data.model_id,
        location_id=data.location_id,
        location=label,
        description=data.description,
        properties=data.properties or {},
    )
    machine.operations = operations
    _set_ranges(machine, ranges)
    db.add(machine)
    db.commit()
    logger.info("Created machine %s", machine.id)
    return get_machine(db, company_id, machine.id)


def update_machine(db: Session, company_id: UUID, machine_id: UUID, data: MachineUpdate):
    machine = get_machine_or_404(db, company_id, machine_id)
    changes = data.model_dump(exclude_unset=True)

    if "model_id" in changes and changes["model_id"] is None:
        return error_response(message="model_id is required", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    model_id = changes.get("model_id") or machine.model_id
    if model_id != machine.model_id:
        _load_model(db, company_id, model_id)

    location_id = changes["location_id"] if "location_id" in changes else machine.location_id
    location = _load_location(db, company_id, location_id)
    label = changes.get("location") or (
        location.path if location and "location_id" in changes else machine.location)

    _ensure_unique_placement(db, company_id, model_id, location_id, label, exclude_id=machine.id)

    if "maintenance_range_ids" in changes:
        ranges = _load_ranges(db, company_id, changes["maintenance_range_ids"] or [])
    else:
        ranges = machine.maintenance_ranges

    explicit = "operation_ids" in changes
    operation_ids = (changes.get("operation_ids") or []) if explicit else machine.operation_ids
    operations = _resolve_operations(
        db, company_id, ranges, operation_ids, explicit=explicit)

    machine.model_id = model_id
    machine.location_id = location_id
    machine.location = label
    if "description" in changes:
        machine.description = changes["description"]
    if "properties" in changes:
        machine.properties = changes["properties"] or {}
    machine.operations = operations
    if "maintenance_range_ids" in changes:
        _set_ranges(machine, ranges)

    db.commit()
    return get_machine(db, company_id, machine.id)


# ---------------- Delete ----------------

def delete_machine(db: Session, company_id: UUID, machine_id: UUID):
    machine = get_machine_or_404(db, company_id, machine_id)
    db.delete(machine)
    db.commit()
    logger.info("Deleted machine %s", machine_id)
    return {"message": "Machine deleted successfully"}


def bulk_delete_machines(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    machines = db.query(Machine).filter(
        Machine.id.in_(ids), Machine.company_id == company_id).all()
    if len(machines) != len(ids):
        return error_response(message="Some machines not found", status_code=AppStatusCode.NOT_FOUND)

    for machine in machines:
        db.delete(machine)
    db.commit()

    logger.info("Bulk deleted %s machines", len(machines))
    return {
        "message": f"{len(machines)} machines deleted successfully",
        "deleted_count": len(machines),
    }
