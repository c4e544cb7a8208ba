# backend/utils/security.py
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Protocol

from fastapi import Request

Permission = Literal["CREATE", "READ", "UPDATE", "DELETE"]

ALL_PERMISSIONS = ("CREATE", "READ", "UPDATE", "DELETE")


@dataclass(frozen=True)
class Credential:
    id_account: int
    id_user: int


@dataclass(frozen=True)
class CrudPermission:
    securable: str
    permission: Permission


class PermissionChecker(Protocol):
    def has_permission(self, credential: Credential, securable: str, permission: str) -> bool:
        ...


class StaticPermissionChecker:
    """Grants a fixed set of permissions per securable to every credential."""

    def __init__(self, grants: Dict[str, Iterable[str]]):
        self.grants = {securable.upper(): {p.upper() for p in perms} for securable, perms in grants.items()}

    def has_permission(self, credential: Credential, securable: str, permission: str) -> bool:
        return permission.upper() in self.grants.get(securable.upper(), set())


default_permission_checker = StaticPermissionChecker({
    "MOVEMENT": ALL_PERMISSIONS,
    "PRODUCT": ALL_PERMISSIONS,
})

# Authentication is not wired yet: every request acts as account 1, user 1
STUB_CREDENTIAL = Credential(id_account=1, id_user=1)


def resolve_credential(request: Request) -> Credential:
    return STUB_CREDENTIAL


def get_permission_checker(request: Request) -> PermissionChecker:
    return getattr(request.app.state, "permission_checker", None) or default_permission_checker
