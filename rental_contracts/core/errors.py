"""
Typed errors raised by the contract lifecycle services.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Each class also derives from the builtin the routers used
to catch (ValueError, LookupError, PermissionError), so older call sites that
catch those keep working.

    ContractLifecycleError
    |
    +-- ValidationError             VALIDATION_FAILED       422
    +-- NotFoundError               NOT_FOUND               404
    +-- ConflictError               CONFLICT                409
    |   +-- ImmutabilityViolationError  IMMUTABILITY_VIOLATION
    +-- AuthorizationError          NOT_AUTHORIZED          403
    +-- ExpiredError                DEADLINE_EXPIRED        410

No error is raised after a write: every transition validates first and
commits once.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional


class ContractLifecycleError(Exception):
    code: str = "CONTRACT_LIFECYCLE_ERROR"
    http_status: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContractLifecycleError, ValueError):
    code = "VALIDATION_FAILED"
    http_status = 422


class NotFoundError(ContractLifecycleError, LookupError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = str(entity_id)


class ConflictError(ContractLifecycleError, ValueError):
    code = "CONFLICT"
    http_status = 409


class ImmutabilityViolationError(ConflictError):
    code = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        super().__init__(f"{entity_type} {entity_id} is immutable: {reason}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class AuthorizationError(ContractLifecycleError, PermissionError):
    code = "NOT_AUTHORIZED"
    http_status = 403


class ExpiredError(ContractLifecycleError, ValueError):
    code = "DEADLINE_EXPIRED"
    http_status = 410

    def __init__(self, message: str, deadline: Optional[datetime] = None):
        super().__init__(message)
        self.deadline = deadline
