# rental_contracts/core/contract_state_graph.py
from rental_contracts.core.errors import ConflictError
from rental_contracts.models.enums import ContractStatus

ALLOWED_STATUS_TRANSITIONS = {
    ContractStatus.draft: {
        ContractStatus.owner_signed,
        ContractStatus.draft,
    },

    ContractStatus.owner_signed: {
        ContractStatus.active,
        ContractStatus.expired,
        ContractStatus.draft,
    },

    ContractStatus.fully_signed: {
        ContractStatus.active,
    },

    ContractStatus.active: {
        ContractStatus.waiting_for_modification,
        ContractStatus.terminated,
    },

    ContractStatus.waiting_for_modification: {
        ContractStatus.draft,
        ContractStatus.modification_in_progress,
        ContractStatus.active,
    },

    ContractStatus.modification_in_progress: {
        ContractStatus.active,
        ContractStatus.expired,
        ContractStatus.draft,
    },

    ContractStatus.expired: {
        ContractStatus.draft,
    },

    ContractStatus.modified: set(),
    ContractStatus.terminated: set(),
    ContractStatus.cancelled: set(),
}

# Statuses from which a tenant signature completes the contract
TENANT_SIGNABLE = {
    ContractStatus.owner_signed,
    ContractStatus.modification_in_progress,
}

# Statuses the sweeper expires once tenant_sign_deadline has passed
AWAITING_TENANT_SIGNATURE = TENANT_SIGNABLE

DOWNLOADABLE = {
    ContractStatus.active,
    ContractStatus.fully_signed,
}


def can_transition(current: ContractStatus, target: ContractStatus) -> bool:
    return target in ALLOWED_STATUS_TRANSITIONS.get(current, set())


def assert_transition(current: str, target: ContractStatus) -> None:
    """
    Raises ConflictError if the graph has no edge current -> target.
    """
    try:
        current_enum = ContractStatus(current)
    except ValueError:
        raise ConflictError(f"Unknown contract status: {current}")

    if not can_transition(current_enum, target):
        raise ConflictError(
            f"Contract cannot move from {current_enum.value} to {target.value}."
        )
