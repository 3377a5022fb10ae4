from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, Lookup, MessageResponse, UserToken
from ...crud.maintenance_assets import machines_crud as crud
from ...enum.maintenance_enum import MaintenanceType
from ...schemas.maintenance_assets.machines_schemas import (
    MachineCreate, MachineListResponse, MachineOut, MachineRequest, MachineUpdate)
from ...schemas.maintenance_assets.operations_schemas import AggregatedOperationOut

router = APIRouter(
    prefix="/api/machines",
    tags=["machines"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=MachineListResponse)
def get_machines(
        params: MachineRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_machines(db, current_user.company_id, params)


@router.get("/lookup", response_model=List[Lookup])
def machine_lookup(
        location_id: Optional[UUID] = Query(None),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.machine_lookup(db, current_user.company_id, location_id)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_machines(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_machines(db, current_user.company_id, request.ids)


@router.post("", response_model=MachineOut, status_code=status.HTTP_201_CREATED)
def create_machine(
        machine: MachineCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_machine(db, current_user.company_id, machine)


@router.get("/{machine_id}", response_model=MachineOut)
def get_machine(
        machine_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_machine(db, current_user.company_id, machine_id)


@router.get("/{machine_id}/operations", response_model=List[AggregatedOperationOut])
def get_machine_operations(
        machine_id: UUID,
        type: MaintenanceType = Query(MaintenanceType.preventive),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_machine_operations(db, current_user.company_id, machine_id, type)


@router.put("/{machine_id}", response_model=MachineOut)
def update_machine(
        machine_id: UUID,
        machine: MachineUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_machine(db, current_user.company_id, machine_id, machine)


@router.delete("/{machine_id}", response_model=MessageResponse)
def delete_machine(
        machine_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_machine(db, current_user.company_id, machine_id)
