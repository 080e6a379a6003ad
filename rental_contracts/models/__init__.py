# rental_contracts/models/__init__.py
# Importing this package registers every table on Base.metadata.
from rental_contracts.models.property import Property
from rental_contracts.models.offer import Offer
from rental_contracts.models.contract import Contract
from rental_contracts.models.contract_version import ContractVersion
from rental_contracts.models.change_request import ContractChangeRequest
from rental_contracts.models.notification import Notification
from rental_contracts.models.audit_log import AuditLog

from rental_contracts.db.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "Property",
    "Offer",
    "Contract",
    "ContractVersion",
    "ContractChangeRequest",
    "Notification",
    "AuditLog",
]
