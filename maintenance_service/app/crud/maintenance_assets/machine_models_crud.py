import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate
from shared.utils.app_status_code import AppStatusCode
from ...models.maintenance_assets.machine_models import MachineModel
from ...models.maintenance_assets.machines import Machine
from ...schemas.maintenance_assets.machine_models_schemas import (
    MachineModelCreate, MachineModelOut, MachineModelRequest, MachineModelUpdate)

logger = logging.getLogger(__name__)


def build_machine_model_filters(company_id: UUID, params: MachineModelRequest):
    filters = [MachineModel.company_id == company_id]

    if params.manufacturer:
        filters.append(MachineModel.manufacturer.ilike(params.manufacturer))

    if params.search:
        search_term = f"%{params.search}%"
        filters.append(or_(
            MachineModel.name.ilike(search_term),
            MachineModel.manufacturer.ilike(search_term),
            MachineModel.brand.ilike(search_term)
        ))

    return filters


def get_machine_model_or_404(db: Session, company_id: UUID, model_id: UUID) -> MachineModel:
    model = db.query(MachineModel).filter(
        MachineModel.id == model_id,
        MachineModel.company_id == company_id
    ).first()
    if not model:
        return not_found_response("Machine model")
    return model


def _machines_count(db: Session, model_id: UUID) -> int:
    return db.query(func.count(Machine.id)).filter(Machine.model_id == model_id).scalar() or 0


def _to_out(db: Session, model: MachineModel) -> MachineModelOut:
    return MachineModelOut.model_validate({
        **model.__dict__,
        "machines_count": _machines_count(db, model.id)
    })


def get_machine_models(db: Session, company_id: UUID, params: MachineModelRequest):
    query = db.query(MachineModel).filter(*build_machine_model_filters(company_id, params))
    return paginate(query, params, order_by=MachineModel.name,
                    serializer=lambda m: _to_out(db, m))


def get_machine_model(db: Session, company_id: UUID, model_id: UUID):
    return _to_out(db, get_machine_model_or_404(db, company_id, model_id))


def machine_model_lookup(db: Session, company_id: UUID) -> List[Lookup]:
    rows = db.query(MachineModel.id, MachineModel.name, MachineModel.brand).filter(
        MachineModel.company_id == company_id
    ).order_by(MachineModel.name).all()
    return [Lookup(id=row.id, name=f"{row.name} ({row.brand})") for row in rows]


def _ensure_unique(db: Session, company_id: UUID, name: str, manufacturer: str, exclude_id=None):
    query = db.query(MachineModel).filter(
        MachineModel.company_id == company_id,
        func.lower(MachineModel.name) == name.lower(),
        func.lower(MachineModel.manufacturer) == manufacturer.lower()
    )
    if exclude_id:
        query = query.filter(MachineModel.id != exclude_id)
    if query.first():
        return error_response(
            message=f"Machine model '{name}' from '{manufacturer}' already exists",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def create_machine_model(db: Session, company_id: UUID, data: MachineModelCreate):
    _ensure_unique(db, company_id, data.name, data.manufacturer)

    model = MachineModel(
        company_id=company_id,
        **data.model_dump(exclude={"properties"}),
        properties=data.properties or {}
    )
    db.add(model)
    db.commit()
    db.refresh(model)
    logger.info("Created machine model %s", model.id)
    return _to_out(db, model)


def update_machine_model(db: Session, company_id: UUID, model_id: UUID, data: MachineModelUpdate):
    model = get_machine_model_or_404(db, company_id, model_id)
    changes = data.model_dump(exclude_unset=True)

    # required fields cannot be blanked out
    for field in ("name", "manufacturer", "brand", "year"):
        if field in changes and changes[field] is None:
            return error_response(
                message=f"{field} is required",
                status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR
            )

    _ensure_unique(db, company_id, changes.get("name", model.name),
                   changes.get("manufacturer", model.manufacturer), exclude_id=model.id)

    for key, value in changes.items():
        if key == "properties":
            value = value or {}
        setattr(model, key, value)

    db.commit()
    db.refresh(model)
    return _to_out(db, model)


def delete_machine_model(db: Session, company_id: UUID, model_id: UUID):
    model = get_machine_model_or_404(db, company_id, model_id)

    machines_count = _machines_count(db, model.id)
    if machines_count:
        logger.warning("Machine model %s is used by %s machines", model.id, machines_count)
        return error_response(
            message="Cannot delete a machine model that is used by machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"machines_count": machines_count}
        )

    db.delete(model)
    db.commit()
    logger.info("Deleted machine model %s", model_id)
    return {"message": "Machine model deleted successfully"}


def bulk_delete_machine_models(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    models = db.query(MachineModel).filter(
        MachineModel.id.in_(ids), MachineModel.company_id == company_id).all()
    if len(models) != len(ids):
        return error_response(message="Some machine models not found", status_code=AppStatusCode.NOT_FOUND)

    machines_count = db.query(func.count(Machine.id)).filter(Machine.model_id.in_(ids)).scalar() or 0
    if machines_count:
        return error_response(
            message="Cannot delete machine models that are used by machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"machines_count": machines_count}
        )

    for model in models:
        db.delete(model)
    db.commit()

    logger.info("Bulk deleted %s machine models", len(models))
    return {
        "message": f"{len(models)} machine models deleted successfully",
        "deleted_count": len(models),
    }
