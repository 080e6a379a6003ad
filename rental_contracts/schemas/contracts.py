from __future__ import annotations
from typing import Dict, Any, Optional, List, Literal
from pydantic import BaseModel, Field


class ContractCreateRequest(BaseModel):
    offerId: str = Field(..., min_length=1)
    # merged over the terms copied from the offer
    contractData: Dict[str, Any] = Field(default_factory=dict)


class ContractUpdateRequest(BaseModel):
    """
    Owner rewrites the draft. Only allowed before the tenant signs.
    """
    contractData: Dict[str, Any]


class SignContractRequest(BaseModel):
    signatureType: Literal["owner", "tenant"]
    signatureData: str


class ApplyModificationRequest(BaseModel):
    """
    Owner applies the changes the tenant agreed to. Keys of `modifications`
    outside the agreed fields are ignored. If ownerSignature is present the
    owner signs the new version in the same step.
    """
    modificationRequestId: str = Field(..., min_length=1)
    modifications: Dict[str, Any] = Field(default_factory=dict)
    ownerSignature: Optional[str] = None


class ContractResponse(BaseModel):
    contractId: str
    offerId: str
    propertyId: str
    ownerId: str
    tenantId: str
    status: str
    contractData: Dict[str, Any]

    ownerSigned: bool
    tenantSigned: bool
    ownerSignedAtIso: Optional[str] = None
    tenantSignedAtIso: Optional[str] = None
    tenantSignDeadlineIso: Optional[str] = None

    modificationSummary: Optional[str] = None
    terminationReason: Optional[str] = None
    terminatedBy: Optional[str] = None
    terminatedAtIso: Optional[str] = None

    createdAtIso: str
    updatedAtIso: str


class ContractListResponse(BaseModel):
    contracts: List[ContractResponse]


class ContractVersionResponse(BaseModel):
    id: str
    contractId: str
    version: int
    status: str
    contractData: Dict[str, Any]
    ownerSigned: bool
    tenantSigned: bool
    ownerSignedAtIso: Optional[str] = None
    tenantSignedAtIso: Optional[str] = None
    modificationReason: Optional[str] = None
    createdAtIso: Optional[str] = None
    isCurrent: bool


class ContractVersionListResponse(BaseModel):
    contractId: str
    versions: List[ContractVersionResponse]


class ContractDownloadResponse(BaseModel):
    downloadUrl: str
    filename: str


class ExpireCheckResponse(BaseModel):
    expired: int
    reverted: int
    expiredContractIds: List[str] = Field(default_factory=list)
    revertedContractIds: List[str] = Field(default_factory=list)
