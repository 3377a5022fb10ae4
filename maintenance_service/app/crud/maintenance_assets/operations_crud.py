import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate
from shared.utils.app_status_code import AppStatusCode
from ...enum.maintenance_enum import OperationType
from ...models.maintenance_assets.machines import machine_operations
from ...models.maintenance_assets.maintenance_ranges import maintenance_range_operations
from ...models.maintenance_assets.operations import Operation
from ...schemas.maintenance_assets.operations_schemas import (
    OperationCreate, OperationOut, OperationRequest, OperationUpdate)

logger = logging.getLogger(__name__)


def build_operation_filters(company_id: UUID, params: OperationRequest):
    filters = [Operation.company_id == company_id]

    if params.type:
        filters.append(Operation.type == params.type.value)

    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            Operation.name.ilike(search_term),
            Operation.description.ilike(search_term),
            Operation.internal_code.ilike(search_term)
        ))

    return filters


def get_operation_or_404(db: Session, company_id: UUID, operation_id: UUID) -> Operation:
    operation = db.query(Operation).filter(
        Operation.id == operation_id,
        Operation.company_id == company_id
    ).first()
    if not operation:
        return not_found_response("Operation")
    return operation


def load_company_operations(db: Session, company_id: UUID, ids: List[UUID]) -> List[Operation]:
    """Load operations by id, rejecting ids that are unknown for the company."""
    ids = list(dict.fromkeys(ids or []))
    if not ids:
        return []
    operations = db.query(Operation).filter(
        Operation.id.in_(ids), Operation.company_id == company_id).all()
    if len(operations) != len(ids):
        return error_response(
            message="One or more operations not found",
            status_code=AppStatusCode.INVALID_INPUT
        )
    by_id = {op.id: op for op in operations}
    return [by_id[op_id] for op_id in ids]


def get_operations(db: Session, company_id: UUID, params: OperationRequest):
    query = db.query(Operation).filter(*build_operation_filters(company_id, params))
    return paginate(query, params, order_by=Operation.name,
                    serializer=OperationOut.model_validate)


def get_operation(db: Session, company_id: UUID, operation_id: UUID):
    return OperationOut.model_validate(get_operation_or_404(db, company_id, operation_id))


def operation_lookup(db: Session, company_id: UUID) -> List[Lookup]:
    rows = db.query(Operation.id, Operation.name).filter(
        Operation.company_id == company_id
    ).order_by(Operation.name).all()
    return [Lookup(id=row.id, name=row.name) for row in rows]


def operation_type_lookup() -> List[Lookup]:
    return [Lookup(id=t.value, name=t.name.capitalize()) for t in OperationType]


def _ensure_unique_code(db: Session, company_id: UUID, internal_code: str, exclude_id=None):
    query = db.query(Operation).filter(
        Operation.company_id == company_id,
        Operation.internal_code == internal_code
    )
    if exclude_id:
        query = query.filter(Operation.id != exclude_id)
    if query.first():
        return error_response(
            message=f"Internal code '{internal_code}' is already in use",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def create_operation(db: Session, company_id: UUID, data: OperationCreate):
    if data.internal_code:
        _ensure_unique_code(db, company_id, data.internal_code)

    operation = Operation(
        company_id=company_id,
        name=data.name,
        description=data.description,
        type=data.type.value,
        order=data.order,
    )
    if data.internal_code:
        operation.internal_code = data.internal_code
    db.add(operation)
    db.commit()
    db.refresh(operation)
    logger.info("Created operation %s", operation.id)
    return OperationOut.model_validate(operation)


def update_operation(db: Session, company_id: UUID, operation_id: UUID, data: OperationUpdate):
    operation = get_operation_or_404(db, company_id, operation_id)
    changes = data.model_dump(exclude_unset=True)

    for field in ("name", "description", "type"):
        if field in changes and changes[field] is None:
            return error_response(
                message=f"{field} is required",
                status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR
            )

    if changes.get("internal_code") and changes["internal_code"] != operation.internal_code:
        _ensure_unique_code(db, company_id, changes["internal_code"], exclude_id=operation.id)
    elif "internal_code" in changes:
        changes.pop("internal_code")

    for key, value in changes.items():
        setattr(operation, key, value.value if isinstance(value, OperationType) else value)

    db.commit()
    db.refresh(operation)
    return OperationOut.model_validate(operation)


def _usage_counts(db: Session, ids: List[UUID]):
    ranges_count = db.query(func.count()).select_from(maintenance_range_operations).filter(
        maintenance_range_operations.c.operation_id.in_(ids)).scalar() or 0
    machines_count = db.query(func.count()).select_from(machine_operations).filter(
        machine_operations.c.operation_id.in_(ids)).scalar() or 0
    return ranges_count, machines_count


def delete_operation(db: Session, company_id: UUID, operation_id: UUID):
    operation = get_operation_or_404(db, company_id, operation_id)

    ranges_count, machines_count = _usage_counts(db, [operation.id])
    if ranges_count or machines_count:
        logger.warning("Operation %s still referenced by %s ranges and %s machines",
                       operation.id, ranges_count, machines_count)
        return error_response(
            message="Cannot delete an operation that is used by maintenance ranges or machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"maintenance_ranges_count": ranges_count, "machines_count": machines_count}
        )

    db.delete(operation)
    db.commit()
    logger.info("Deleted operation %s", operation_id)
    return {"message": "Operation deleted successfully"}


def bulk_delete_operations(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    operations = db.query(Operation).filter(
        Operation.id.in_(ids), Operation.company_id == company_id).all()
    if len(operations) != len(ids):
        return error_response(message="Some operations not found", status_code=AppStatusCode.NOT_FOUND)

    ranges_count, machines_count = _usage_counts(db, ids)
    if ranges_count or machines_count:
        return error_response(
            message="Cannot delete operations that are used by maintenance ranges or machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"maintenance_ranges_count": ranges_count, "machines_count": machines_count}
        )

    for operation in operations:
        db.delete(operation)
    db.commit()

    logger.info("Bulk deleted %s operations", len(operations))
    return {
        "message": f"{len(operations)} operations deleted successfully",
        "deleted_count": len(operations),
    }
