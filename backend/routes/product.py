# backend/routes/product.py
from fastapi import APIRouter, Depends

from database import ProcedureClient, get_db
from schemas.product import ProductPath
from services.product import product_stock_get
from utils.crud import ValidationResult, validated
from utils.response import success_response

router = APIRouter(tags=["Product"])


@router.get("/product/{id}/stock")
def get_product_stock(
    call: ValidationResult = Depends(validated(ProductPath, "PRODUCT", "READ")),
    db: ProcedureClient = Depends(get_db),
):
    """Current quantity, totals and status of one product."""
    stock = product_stock_get(db, call.credential, call.params.id)
    return success_response(stock.model_dump(by_alias=True, mode="json"))
