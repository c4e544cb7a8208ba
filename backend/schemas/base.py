# backend/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Wire format is camelCase (idMovement, pageSize, ...), attributes stay snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordModel(CamelModel):
    """Row returned by a stored procedure."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
