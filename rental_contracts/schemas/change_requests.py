from __future__ import annotations
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field

from rental_contracts.models.enums import ChangeResponse


class ModificationRequestPayload(BaseModel):
    modificationReason: str
    fieldsToModify: List[str] = Field(..., description="subset of the closed field vocabulary")
    requestedChanges: Optional[Dict[str, Any]] = None


class TerminationRequestPayload(BaseModel):
    reason: str
    detailedReason: Optional[str] = None


class ChangeRequestRespondPayload(BaseModel):
    response: ChangeResponse
    tenantResponse: Optional[str] = None


class ChangeRequestResponse(BaseModel):
    requestId: str
    contractId: str
    kind: str
    status: str
    requestedBy: str

    # modification
    fieldsToModify: Optional[List[str]] = None
    modificationReason: Optional[str] = None
    requestedChanges: Optional[Dict[str, Any]] = None
    modificationDeadlineIso: Optional[str] = None

    # termination
    reason: Optional[str] = None
    detailedReason: Optional[str] = None

    tenantResponse: Optional[str] = None
    respondedAtIso: Optional[str] = None
    createdAtIso: str


class ChangeRequestListResponse(BaseModel):
    requests: List[ChangeRequestResponse]
