# backend/schemas/movement.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, ValidationInfo, model_validator

from schemas.base import CamelModel, RecordModel

# Allowed movement types, as understood by the stored procedures
MovementType = Literal["ENTRADA", "SAIDA", "ADICAO_PRODUTO", "ALTERACAO_QUANTIDADE", "EXCLUSAO"]

MovementOrderBy = Literal["DATA_HORA_ASC", "DATA_HORA_DESC"]


# Body of POST /movement
class MovementCreate(CamelModel):
    movement_type: MovementType
    id_product: Optional[int] = Field(default=None, gt=0)
    quantity: float = Field(allow_inf_nan=False)
    observation: Optional[str] = Field(default=None, max_length=500)
    product_name: Optional[str] = Field(default=None, max_length=100)
    product_description: Optional[str] = Field(default=None, max_length=500)
    reason: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def _check_form_rules(self, info: ValidationInfo) -> "MovementCreate":
        settings = (info.context or {}).get("settings")
        if settings is None or not settings.ENFORCE_MOVEMENT_RULES:
            return self

        if self.movement_type == "ADICAO_PRODUTO":
            if not self.product_name:
                raise ValueError("productName is required for ADICAO_PRODUTO")
        elif self.id_product is None:
            raise ValueError(f"idProduct is required for {self.movement_type}")

        if self.movement_type == "EXCLUSAO" and not self.reason:
            raise ValueError("reason is required for EXCLUSAO")
        return self


# Query of GET /movement
class MovementListQuery(CamelModel):
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    id_product: Optional[int] = Field(default=None, gt=0)
    movement_type: Optional[MovementType] = None
    id_user: Optional[int] = Field(default=None, gt=0)
    order_by: MovementOrderBy = "DATA_HORA_DESC"
    page_size: int = Field(default=50, ge=1, le=100)
    page: int = Field(default=1, ge=1)


# Path of GET /movement/{id}
class MovementPath(CamelModel):
    id: int = Field(gt=0)


class MovementCreated(RecordModel):
    id_movement: int = Field(gt=0)


class MovementListItem(RecordModel):
    id_movement: int
    id_product: Optional[int] = None
    product_name: Optional[str] = None
    movement_type: str
    quantity: float
    date_time: datetime
    id_user: int
    user_name: Optional[str] = None
    observation: Optional[str] = None
    reason: Optional[str] = None


class MovementListResult(CamelModel):
    movements: List[MovementListItem]
    total: int


class MovementDetail(MovementListItem):
    product_description: Optional[str] = None
