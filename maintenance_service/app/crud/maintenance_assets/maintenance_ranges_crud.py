import logging
from typing import List
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate
from shared.utils.app_status_code import AppStatusCode
from ...enum.maintenance_enum import MaintenanceType
from ...models.maintenance_assets.maintenance_ranges import MaintenanceRange
from ...models.maintenance_assets.work_orders import WorkOrder
from ...schemas.maintenance_assets.maintenance_ranges_schemas import (
    MaintenanceRangeCreate, MaintenanceRangeOut, MaintenanceRangeRequest, MaintenanceRangeUpdate)
from ...services.operation_aggregation import sort_operations
from .operations_crud import load_company_operations

logger = logging.getLogger(__name__)


def build_maintenance_range_filters(company_id: UUID, params: MaintenanceRangeRequest):
    filters = [MaintenanceRange.company_id == company_id]

    if params.type:
        filters.append(MaintenanceRange.type == params.type.value)

    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            MaintenanceRange.name.ilike(search_term),
            MaintenanceRange.description.ilike(search_term)
        ))

    return filters


def get_maintenance_range_or_404(db: Session, company_id: UUID, range_id: UUID) -> MaintenanceRange:
    maintenance_range = db.query(MaintenanceRange).filter(
        MaintenanceRange.id == range_id,
        MaintenanceRange.company_id == company_id
    ).first()
    if not maintenance_range:
        return not_found_response("Maintenance range")
    return maintenance_range


def range_to_out(maintenance_range: MaintenanceRange) -> MaintenanceRangeOut:
    operations = sort_operations(maintenance_range.operations)
    return MaintenanceRangeOut.model_validate({
        **maintenance_range.__dict__,
        "operations": operations,
        "operation_ids": [op.id for op in operations],
        "days_of_week": maintenance_range.days_of_week or [],
    })


def count_work_orders_using_ranges(db: Session, company_id: UUID, range_ids: List[UUID]) -> int:
    """Work orders whose machines were built from any of the given ranges."""
    wanted = {str(range_id) for range_id in range_ids}
    count = 0
    for (machines,) in db.query(WorkOrder.machines).filter(WorkOrder.company_id == company_id).all():
        for machine in machines or []:
            if wanted.intersection(str(r) for r in machine.get("maintenance_range_ids") or []):
                count += 1
                break
    return count


def get_maintenance_ranges(db: Session, company_id: UUID, params: MaintenanceRangeRequest):
    query = db.query(MaintenanceRange).options(
        selectinload(MaintenanceRange.operations)
    ).filter(*build_maintenance_range_filters(company_id, params))
    return paginate(query, params, order_by=MaintenanceRange.name, serializer=range_to_out)


def get_maintenance_range(db: Session, company_id: UUID, range_id: UUID):
    return range_to_out(get_maintenance_range_or_404(db, company_id, range_id))


def maintenance_range_lookup(db: Session, company_id: UUID, range_type: MaintenanceType = None) -> List[Lookup]:
    query = db.query(MaintenanceRange.id, MaintenanceRange.name).filter(
        MaintenanceRange.company_id == company_id)
    if range_type:
        query = query.filter(MaintenanceRange.type == range_type.value)
    return [Lookup(id=row.id, name=row.name) for row in query.order_by(MaintenanceRange.name).all()]


def _recurrence_fields(data) -> dict:
    return {
        "frequency": data.frequency.value if data.frequency else None,
        "start_date": data.start_date,
        "start_time": data.start_time,
        "days_of_week": [d.value for d in data.days_of_week or []],
    }


def create_maintenance_range(db: Session, company_id: UUID, data: MaintenanceRangeCreate):
    operations = load_company_operations(db, company_id, data.operation_ids)

    maintenance_range = MaintenanceRange(
        company_id=company_id,
        name=data.name,
        description=data.description,
        type=data.type.value,
        **_recurrence_fields(data)
    )
    maintenance_range.operations = operations
    db.add(maintenance_range)
    db.commit()
    db.refresh(maintenance_range)
    logger.info("Created maintenance range %s", maintenance_range.id)
    return range_to_out(maintenance_range)


def _ensure_linked_machines_allow(maintenance_range: MaintenanceRange, new_type: str, operations):
    """Range edits must keep every linked machine consistent."""
    operation_ids = {op.id for op in operations}
    for link in maintenance_range.machine_links:
        machine = link.machine
        other_types = {mr.type for mr in machine.maintenance_ranges if mr.id != maintenance_range.id}
        if other_types and other_types != {new_type}:
            return error_response(
                message=f"Machine {machine.location} has maintenance ranges of another type",
                status_code=AppStatusCode.INVALID_INPUT,
                data={"machine_id": str(machine.id)}
            )

        if new_type == MaintenanceType.corrective.value and machine.operations:
            return error_response(
                message=f"Machine {machine.location} has direct operations and cannot use a corrective range",
                status_code=AppStatusCode.INVALID_INPUT,
                data={"machine_id": str(machine.id)}
            )

        overlap = [op.name for op in machine.operations if op.id in operation_ids]
        if overlap:
            return error_response(
                message=f"Operations already assigned directly to machine {machine.location}: {', '.join(overlap)}",
                status_code=AppStatusCode.INVALID_INPUT,
                data={"machine_id": str(machine.id)}
            )


def update_maintenance_range(db: Session, company_id: UUID, range_id: UUID, data: MaintenanceRangeUpdate):
    maintenance_range = get_maintenance_range_or_404(db, company_id, range_id)
    changes = data.model_dump(exclude_unset=True)

    for field in ("name", "type"):
        if field in changes and changes[field] is None:
            return error_response(
                message=f"{field} is required",
                status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR
            )

    operations = maintenance_range.operations
    if "operation_ids" in changes:
        operations = load_company_operations(db, company_id, changes.pop("operation_ids") or [])
    new_type = data.type.value if data.type else maintenance_range.type
    _ensure_linked_machines_allow(maintenance_range, new_type, operations)
    if operations is not maintenance_range.operations:
        maintenance_range.operations = operations

    for key, value in changes.items():
        if key == "days_of_week":
            value = [d.value for d in data.days_of_week or []]
        elif hasattr(value, "value"):
            value = value.value
        setattr(maintenance_range, key, value)

    db.commit()
    db.refresh(maintenance_range)
    return range_to_out(maintenance_range)


def delete_maintenance_range(db: Session, company_id: UUID, range_id: UUID):
    maintenance_range = get_maintenance_range_or_404(db, company_id, range_id)

    work_orders_count = count_work_orders_using_ranges(db, company_id, [maintenance_range.id])
    if work_orders_count:
        logger.warning("Maintenance range %s is used by %s work orders",
                       maintenance_range.id, work_orders_count)
        return error_response(
            message="Cannot delete a maintenance range that is used by work orders",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"work_orders_count": work_orders_count}
        )

    db.delete(maintenance_range)
    db.commit()
    logger.info("Deleted maintenance range %s", range_id)
    return {"message": "Maintenance range deleted successfully"}


def bulk_delete_maintenance_ranges(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    ranges = db.query(MaintenanceRange).filter(
        MaintenanceRange.id.in_(ids), MaintenanceRange.company_id == company_id).all()
    if len(ranges) != len(ids):
        return error_response(message="Some maintenance ranges not found", status_code=AppStatusCode.NOT_FOUND)

    work_orders_count = count_work_orders_using_ranges(db, company_id, ids)
    if work_orders_count:
        return error_response(
            message="Cannot delete maintenance ranges that are used by work orders",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"work_orders_count": work_orders_count}
        )

    for maintenance_range in ranges:
        db.delete(maintenance_range)
    db.commit()

    logger.info("Bulk deleted %s maintenance ranges", len(ranges))
    return {
        "message": f"{len(ranges)} maintenance ranges deleted successfully",
        "deleted_count": len(ranges),
    }
