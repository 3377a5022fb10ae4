from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, Lookup, MessageResponse, UserToken
from ...crud.maintenance_assets import operations_crud as crud
from ...schemas.maintenance_assets.operations_schemas import (
    OperationCreate, OperationListResponse, OperationOut, OperationRequest, OperationUpdate)

router = APIRouter(
    prefix="/api/operations",
    tags=["operations"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=OperationListResponse)
def get_operations(
        params: OperationRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_operations(db, current_user.company_id, params)


@router.get("/lookup", response_model=List[Lookup])
def operation_lookup(
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.operation_lookup(db, current_user.company_id)


@router.get("/type-lookup", response_model=List[Lookup])
def operation_type_lookup():
    return crud.operation_type_lookup()


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_operations(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_operations(db, current_user.company_id, request.ids)


@router.post("", response_model=OperationOut, status_code=status.HTTP_201_CREATED)
def create_operation(
        operation: OperationCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_operation(db, current_user.company_id, operation)


@router.get("/{operation_id}", response_model=OperationOut)
def get_operation(
        operation_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_operation(db, current_user.company_id, operation_id)


@router.put("/{operation_id}", response_model=OperationOut)
def update_operation(
        operation_id: UUID,
        operation: OperationUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_operation(db, current_user.company_id, operation_id, operation)


@router.delete("/{operation_id}", response_model=MessageResponse)
def delete_operation(
        operation_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_operation(db, current_user.company_id, operation_id)
