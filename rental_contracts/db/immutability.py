"""
ORM guard keeping contract_versions append-only.

Any flush that would UPDATE or DELETE a ContractVersion raises
ImmutabilityViolationError before SQL reaches the database. Inserts are the
only write the engine ever issues for this table.
"""
from __future__ import annotations

import logging

from sqlalchemy import event

from rental_contracts.core.errors import ImmutabilityViolationError
from rental_contracts.models.contract_version import ContractVersion

logger = logging.getLogger(__name__)


def _block(operation: str, target: ContractVersion) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "ContractVersion",
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="ContractVersion",
        entity_id=str(target.id),
        reason=f"archived versions cannot be {'modified' if operation == 'UPDATE' else 'deleted'}",
    )


def _check_version_update(mapper, connection, target):
    _block("UPDATE", target)


def _check_version_delete(mapper, connection, target):
    _block("DELETE", target)


def register_immutability_listeners() -> None:
    """
    Idempotent; called when the models package is imported.
    """
    if not event.contains(ContractVersion, "before_update", _check_version_update):
        event.listen(ContractVersion, "before_update", _check_version_update)
    if not event.contains(ContractVersion, "before_delete", _check_version_delete):
        event.listen(ContractVersion, "before_delete", _check_version_delete)
