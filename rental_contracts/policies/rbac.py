#rental_contracts/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass

from rental_contracts.core.errors import AuthorizationError
from rental_contracts.models.enums import UserRole


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: UserRole
    display_name: str


def require_role(principal: Principal, role: UserRole) -> None:
    """
    Pure RBAC: the token's role must match the side of the deal being acted on.
    Party membership (is this *the* owner of *this* contract) is checked in
    contract_policy.
    """
    if principal.role != role:
        raise AuthorizationError(
            f"Role {principal.role.value} not permitted; {role.value} required."
        )
