# rental_contracts/services/request_store.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_contracts.core.errors import NotFoundError
from rental_contracts.models.change_request import ContractChangeRequest
from rental_contracts.models.contract import Contract
from rental_contracts.models.enums import ChangeRequestKind, ChangeRequestStatus


class RequestStore:
    """
    Row access for modification / termination requests. Callers commit.
    """

    def get(self, db: Session, request_id: uuid.UUID) -> ContractChangeRequest:
        req = db.get(ContractChangeRequest, request_id)
        if req is None:
            raise NotFoundError("Change request", request_id)
        return req

    def get_for_update(self, db: Session, request_id: uuid.UUID) -> ContractChangeRequest:
        req = (
            db.execute(
                select(ContractChangeRequest)
                .where(ContractChangeRequest.id == request_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .one_or_none()
        )
        if req is None:
            raise NotFoundError("Change request", request_id)
        return req

    def pending_for_contract(
        self, db: Session, contract_id: uuid.UUID, kind: ChangeRequestKind
    ) -> Optional[ContractChangeRequest]:
        return (
            db.execute(
                select(ContractChangeRequest).where(
                    ContractChangeRequest.contract_id == contract_id,
                    ContractChangeRequest.kind == kind.value,
                    ContractChangeRequest.status == ChangeRequestStatus.pending.value,
                )
            )
            .scalars()
            .first()
        )

    def latest_with_status(
        self,
        db: Session,
        contract_id: uuid.UUID,
        kind: ChangeRequestKind,
        status: ChangeRequestStatus,
    ) -> Optional[ContractChangeRequest]:
        return (
            db.execute(
                select(ContractChangeRequest)
                .where(
                    ContractChangeRequest.contract_id == contract_id,
                    ContractChangeRequest.kind == kind.value,
                    ContractChangeRequest.status == status.value,
                )
                .order_by(ContractChangeRequest.created_at.desc())
            )
            .scalars()
            .first()
        )

    def list_for_contract(
        self, db: Session, contract_id: uuid.UUID, *, include_resolved: bool = False
    ) -> List[ContractChangeRequest]:
        q = select(ContractChangeRequest).where(ContractChangeRequest.contract_id == contract_id)
        if not include_resolved:
            q = q.where(ContractChangeRequest.status == ChangeRequestStatus.pending.value)
        return list(db.execute(q.order_by(ContractChangeRequest.created_at.desc())).scalars().all())

    def list_made_by(
        self, db: Session, requester_id: str, *, kind: Optional[ChangeRequestKind] = None
    ) -> List[ContractChangeRequest]:
        q = select(ContractChangeRequest).where(ContractChangeRequest.requester_id == requester_id)
        if kind is not None:
            q = q.where(ContractChangeRequest.kind == kind.value)
        return list(db.execute(q.order_by(ContractChangeRequest.created_at.desc())).scalars().all())

    def list_addressed_to(
        self, db: Session, tenant_id: str, *, kind: Optional[ChangeRequestKind] = None
    ) -> List[ContractChangeRequest]:
        q = (
            select(ContractChangeRequest)
            .join(Contract, Contract.id == ContractChangeRequest.contract_id)
            .where(Contract.tenant_id == tenant_id)
        )
        if kind is not None:
            q = q.where(ContractChangeRequest.kind == kind.value)
        return list(db.execute(q.order_by(ContractChangeRequest.created_at.desc())).scalars().all())

    def list_lapsed_accepted_modifications(self, db: Session, now) -> List[ContractChangeRequest]:
        return list(
            db.execute(
                select(ContractChangeRequest)
                .where(
                    ContractChangeRequest.kind == ChangeRequestKind.modification.value,
                    ContractChangeRequest.status == ChangeRequestStatus.accepted.value,
                    ContractChangeRequest.modification_deadline.is_not(None),
                    ContractChangeRequest.modification_deadline < now,
                )
            ).scalars().all()
        )
