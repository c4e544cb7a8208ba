# backend/services/product.py
from database import ExpectedReturn, ProcedureClient
from schemas.product import ProductStock
from services._records import to_record
from utils.errors import NotFound
from utils.security import Credential

SP_PRODUCT_STOCK_GET = "[functional].[spProductStockGet]"


# Current stock snapshot, computed entirely by the database
def product_stock_get(db: ProcedureClient, credential: Credential, id_product: int) -> ProductStock:
    row = db.execute(
        SP_PRODUCT_STOCK_GET,
        {"idAccount": credential.id_account, "idProduct": id_product},
        ExpectedReturn.SINGLE,
    )
    if row is None:
        raise NotFound("Product not found")
    return to_record(ProductStock, row, SP_PRODUCT_STOCK_GET)
