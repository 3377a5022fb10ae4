from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, Lookup, MessageResponse, UserToken
from ...crud.maintenance_assets import machine_models_crud as crud
from ...schemas.maintenance_assets.machine_models_schemas import (
    MachineModelCreate, MachineModelListResponse, MachineModelOut, MachineModelRequest, MachineModelUpdate)

router = APIRouter(
    prefix="/api/machine-models",
    tags=["machine-models"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=MachineModelListResponse)
def get_machine_models(
        params: MachineModelRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_machine_models(db, current_user.company_id, params)


@router.get("/lookup", response_model=List[Lookup])
def machine_model_lookup(
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.machine_model_lookup(db, current_user.company_id)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_machine_models(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_machine_models(db, current_user.company_id, request.ids)


@router.post("", response_model=MachineModelOut, status_code=status.HTTP_201_CREATED)
def create_machine_model(
        model: MachineModelCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_machine_model(db, current_user.company_id, model)


@router.get("/{model_id}", response_model=MachineModelOut)
def get_machine_model(
        model_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_machine_model(db, current_user.company_id, model_id)


@router.put("/{model_id}", response_model=MachineModelOut)
def update_machine_model(
        model_id: UUID,
        model: MachineModelUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_machine_model(db, current_user.company_id, model_id, model)


@router.delete("/{model_id}", response_model=MessageResponse)
def delete_machine_model(
        model_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_machine_model(db, current_user.company_id, model_id)
