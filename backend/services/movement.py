# backend/services/movement.py
from database import ExpectedReturn, ProcedureClient
from schemas.movement import (
    MovementCreate,
    MovementCreated,
    MovementDetail,
    MovementListItem,
    MovementListQuery,
    MovementListResult,
)
from services._records import to_record
from utils.errors import NotFound, ResultShapeError
from utils.security import Credential

SP_MOVEMENT_CREATE = "[functional].[spMovementCreate]"
SP_MOVEMENT_LIST = "[functional].[spMovementList]"
SP_MOVEMENT_GET = "[functional].[spMovementGet]"


def movement_create(db: ProcedureClient, credential: Credential, params: MovementCreate) -> MovementCreated:
    """Register a stock movement; business rules (e.g. no negative stock) are enforced by the procedure."""
    row = db.execute(
        SP_MOVEMENT_CREATE,
        {
            "idAccount": credential.id_account,
            "idUser": credential.id_user,
            "movementType": params.movement_type,
            "idProduct": params.id_product or None,
            "quantity": params.quantity,
            "observation": params.observation or None,
            "productName": params.product_name or None,
            "productDescription": params.product_description or None,
            "reason": params.reason or None,
        },
        ExpectedReturn.SINGLE,
    )
    if row is None:
        raise ResultShapeError(f"{SP_MOVEMENT_CREATE} returned no row")
    return to_record(MovementCreated, row, SP_MOVEMENT_CREATE)


def movement_list(db: ProcedureClient, credential: Credential, params: MovementListQuery) -> MovementListResult:
    """
    Page through movements. The procedure repeats the overall count in a
    `total` column on every row, so it is read from the first one.
    """
    result_sets = db.execute(
        SP_MOVEMENT_LIST,
        {
            "idAccount": credential.id_account,
            "dateStart": params.date_start or None,
            "dateEnd": params.date_end or None,
            "idProduct": params.id_product or None,
            "movementType": params.movement_type or None,
            "idUser": params.id_user or None,
            "orderBy": params.order_by or "DATA_HORA_DESC",
            "pageSize": params.page_size or 50,
            "page": params.page or 1,
        },
        ExpectedReturn.MULTI,
    )

    rows = result_sets[0] if result_sets else []
    total = int(rows[0].get("total") or 0) if rows else 0

    return MovementListResult(
        movements=[to_record(MovementListItem, row, SP_MOVEMENT_LIST) for row in rows],
        total=total,
    )


def movement_get(db: ProcedureClient, credential: Credential, id_movement: int) -> MovementDetail:
    row = db.execute(
        SP_MOVEMENT_GET,
        {"idAccount": credential.id_account, "idMovement": id_movement},
        ExpectedReturn.SINGLE,
    )
    if row is None:
        raise NotFound("Movement not found")
    return to_record(MovementDetail, row, SP_MOVEMENT_GET)
