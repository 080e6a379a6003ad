#rental_contracts/models/enums.py
from __future__ import annotations
from enum import Enum


class UserRole(str, Enum):
    OWNER = "owner"
    TENANT = "tenant"


class ContractStatus(str, Enum):
    draft = "draft"
    owner_signed = "owner_signed"
    # legacy transient state; tenant signature activates directly
    fully_signed = "fully_signed"
    active = "active"
    expired = "expired"
    waiting_for_modification = "waiting_for_modification"
    modification_in_progress = "modification_in_progress"
    # legacy display marker for rows written before the re-sign flow
    modified = "modified"
    terminated = "terminated"
    cancelled = "cancelled"


class VersionStatus(str, Enum):
    superseded = "superseded"


class ChangeRequestKind(str, Enum):
    modification = "modification"
    termination = "termination"


class ChangeRequestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    modification_in_progress = "modification_in_progress"
    completed = "completed"


class ChangeResponse(str, Enum):
    accepted = "accepted"
    rejected = "rejected"


class ModificationField(str, Enum):
    tenant_name = "tenant_name"
    tenant_cin = "tenant_cin"
    tenant_address = "tenant_address"
    monthly_rent = "monthly_rent"
    deposit = "deposit"
    contract_duration = "contract_duration"
    special_conditions = "special_conditions"
    payment_terms = "payment_terms"


class OfferStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    contract_requested = "contract_requested"


class PropertyAvailability(str, Enum):
    available = "available"
    rented = "rented"
    unavailable = "unavailable"


class NotificationType(str, Enum):
    contract = "contract"
    contract_request = "contract_request"
    contract_signature_required = "contract_signature_required"
    contract_active = "contract_active"
    contract_expired = "contract_expired"
    contract_modified = "contract_modified"
    contract_modification_request = "contract_modification_request"
    contract_modification_accepted = "contract_modification_accepted"
    contract_modification_rejected = "contract_modification_rejected"
    contract_modification_lapsed = "contract_modification_lapsed"
    contract_termination_request = "contract_termination_request"
    contract_termination_accepted = "contract_termination_accepted"
    contract_termination_rejected = "contract_termination_rejected"
