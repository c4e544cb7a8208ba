# backend/routes/movement.py
from fastapi import APIRouter, Depends

from database import ProcedureClient, get_db
from schemas.movement import MovementCreate, MovementListQuery, MovementPath
from services.movement import movement_create, movement_get, movement_list
from utils.crud import ValidationResult, validated
from utils.response import success_response

router = APIRouter(tags=["Movement"])

SECURABLE = "MOVEMENT"


# Register an entry, exit, new product, quantity adjustment or deletion
@router.post("/movement")
def create_movement(
    call: ValidationResult = Depends(validated(MovementCreate, SECURABLE, "CREATE")),
    db: ProcedureClient = Depends(get_db),
):
    result = movement_create(db, call.credential, call.params)
    return success_response(result.model_dump(by_alias=True, mode="json"))


@router.get("/movement")
def list_movements(
    call: ValidationResult = Depends(validated(MovementListQuery, SECURABLE, "READ")),
    db: ProcedureClient = Depends(get_db),
):
    result = movement_list(db, call.credential, call.params)
    return success_response(result.model_dump(by_alias=True, mode="json"))


@router.get("/movement/{id}")
def get_movement(
    call: ValidationResult = Depends(validated(MovementPath, SECURABLE, "READ")),
    db: ProcedureClient = Depends(get_db),
):
    movement = movement_get(db, call.credential, call.params.id)
    return success_response(movement.model_dump(by_alias=True, mode="json"))
