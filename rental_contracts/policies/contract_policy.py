# rental_contracts/policies/contract_policy.py
from __future__ import annotations

from rental_contracts.core.contract_state_graph import DOWNLOADABLE
from rental_contracts.core.errors import AuthorizationError, ConflictError
from rental_contracts.models.contract import Contract
from rental_contracts.models.enums import ContractStatus, UserRole


def is_party(contract: Contract, user_id: str) -> bool:
    return user_id in {contract.owner_id, contract.tenant_id}


def require_party(contract: Contract, user_id: str) -> None:
    if not is_party(contract, user_id):
        raise AuthorizationError("Not a party to this contract.")


def require_owner(contract: Contract, user_id: str) -> None:
    if user_id != contract.owner_id:
        raise AuthorizationError("Only the contract owner may perform this action.")


def require_tenant(contract: Contract, user_id: str) -> None:
    if user_id != contract.tenant_id:
        raise AuthorizationError("Only the contract tenant may perform this action.")


def require_signer(contract: Contract, user_id: str, signer_role: UserRole) -> None:
    if signer_role == UserRole.OWNER:
        require_owner(contract, user_id)
    else:
        require_tenant(contract, user_id)


def can_download(contract: Contract) -> bool:
    try:
        return ContractStatus(contract.status) in DOWNLOADABLE
    except ValueError:
        return False


def enforce_download(contract: Contract, user_id: str) -> None:
    """
    Parties only, and only once the contract is in force.
    """
    require_party(contract, user_id)
    if not can_download(contract):
        raise ConflictError(
            f"Contract is not downloadable in status {contract.status}."
        )
