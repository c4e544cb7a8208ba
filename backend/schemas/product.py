# backend/schemas/product.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from schemas.base import CamelModel, RecordModel

# DISPONIVEL = available, EM_FALTA = out of stock, INATIVO = inactive
StockStatus = Literal["DISPONIVEL", "EM_FALTA", "INATIVO"]


# Path of GET /product/{id}/stock
class ProductPath(CamelModel):
    id: int = Field(gt=0)


class ProductStock(RecordModel):
    id_product: int
    current_quantity: float
    total_entries: float
    total_exits: float
    last_update: Optional[datetime] = None
    status: StockStatus
