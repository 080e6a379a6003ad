from rental_contracts.schemas.contracts import (
    ContractCreateRequest,
    ContractUpdateRequest,
    SignContractRequest,
    ApplyModificationRequest,
    ContractResponse,
    ContractListResponse,
    ContractVersionResponse,
    ContractVersionListResponse,
    ContractDownloadResponse,
    ExpireCheckResponse,
)
from rental_contracts.schemas.change_requests import (
    ModificationRequestPayload,
    TerminationRequestPayload,
    ChangeRequestRespondPayload,
    ChangeRequestResponse,
    ChangeRequestListResponse,
)
from rental_contracts.schemas.notifications import NotificationResponse, NotificationListResponse
from rental_contracts.schemas.offers import OfferResponse
