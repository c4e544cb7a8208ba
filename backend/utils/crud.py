# backend/utils/crud.py
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from fastapi import Request
from pydantic import BaseModel, ValidationError

import config
from utils.errors import PermissionDenied, ValidationFailed
from utils.security import (
    Credential,
    CrudPermission,
    get_permission_checker,
    resolve_credential,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    credential: Credential
    params: BaseModel


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    details = []
    for e in errors:
        details.append({
            "field": ".".join(str(part) for part in e.get("loc", ())),
            "message": e.get("msg", "Invalid value"),
            "type": e.get("type", "value_error"),
        })
    return details


async def merge_request_params(request: Request) -> Dict[str, Any]:
    """Path params, then query params, then body; later sources win on collisions."""
    body: Dict[str, Any] = {}
    raw = await request.body()
    if raw:
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise ValidationFailed(details=[{"field": "body", "message": "Malformed JSON body", "type": "json_invalid"}])
        if not isinstance(parsed, dict):
            raise ValidationFailed(details=[{"field": "body", "message": "Body must be a JSON object", "type": "dict_type"}])
        body = parsed
    return {**request.path_params, **dict(request.query_params), **body}


class CrudController:
    def __init__(self, permissions: List[CrudPermission]):
        self.permissions = permissions

    async def create(self, request: Request, schema: Type[BaseModel]):
        return await self.validate_request(request, schema, "CREATE")

    async def read(self, request: Request, schema: Type[BaseModel]):
        return await self.validate_request(request, schema, "READ")

    async def update(self, request: Request, schema: Type[BaseModel]):
        return await self.validate_request(request, schema, "UPDATE")

    async def delete(self, request: Request, schema: Type[BaseModel]):
        return await self.validate_request(request, schema, "DELETE")

    async def validate_request(
        self, request: Request, schema: Type[BaseModel], operation: str
    ) -> Tuple[Optional[ValidationResult], Optional[ValidationFailed]]:
        try:
            data = await merge_request_params(request)
            params = schema.model_validate(data, context={"settings": config.settings})
        except ValidationFailed as e:
            return None, e
        except ValidationError as e:
            return None, ValidationFailed(details=format_validation_errors(e.errors(include_url=False)))

        credential = resolve_credential(request)
        self.check_permission(request, credential, operation)
        return ValidationResult(credential=credential, params=params), None

    def check_permission(self, request: Request, credential: Credential, operation: str) -> None:
        required = [p for p in self.permissions if p.permission == operation]
        if not required:
            raise RuntimeError(f"No {operation} permission declared for this operation")

        checker = get_permission_checker(request)
        for p in required:
            if not checker.has_permission(credential, p.securable, p.permission):
                logger.warning("User %s denied %s on %s", credential.id_user, p.permission, p.securable)
                raise PermissionDenied(f"Not authorized to {p.permission} {p.securable}")


def validated(schema: Type[BaseModel], securable: str, permission: str):
    """Dependency factory: validated params plus credential, or a 400 validation error."""
    controller = CrudController([CrudPermission(securable=securable, permission=permission)])

    async def _dependency(request: Request) -> ValidationResult:
        result, error = await controller.validate_request(request, schema, permission)
        if result is None:
            raise error
        return result

    return _dependency
