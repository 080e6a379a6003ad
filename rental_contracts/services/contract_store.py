# rental_contracts/services/contract_store.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from rental_contracts.core.errors import NotFoundError
from rental_contracts.models.contract import Contract
from rental_contracts.models.contract_version import ContractVersion
from rental_contracts.models.enums import ContractStatus, VersionStatus


class ContractStore:
    """
    Row access for contracts and their archived versions.
    No commits here: callers own the transaction.
    """

    # ---------------------------
    # READS
    # ---------------------------

    def get(self, db: Session, contract_id: uuid.UUID) -> Contract:
        contract = db.get(Contract, contract_id)
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        return contract

    def get_for_update(self, db: Session, contract_id: uuid.UUID) -> Contract:
        """
        Lock the contract row (FOR UPDATE) so status re-checks see the
        committed value and concurrent transitions serialize.
        """
        contract = (
            db.execute(
                select(Contract)
                .where(Contract.id == contract_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .one_or_none()
        )
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        return contract

    def active_for_property(
        self,
        db: Session,
        property_id: uuid.UUID,
        *,
        exclude_contract_id: Optional[uuid.UUID] = None,
    ) -> Optional[Contract]:
        q = select(Contract).where(
            Contract.property_id == property_id,
            Contract.status == ContractStatus.active.value,
        )
        if exclude_contract_id is not None:
            q = q.where(Contract.id != exclude_contract_id)
        return db.execute(q).scalars().first()

    def list_for_user(self, db: Session, user_id: str, *, owner_only: bool = False) -> List[Contract]:
        if owner_only:
            cond = Contract.owner_id == user_id
        else:
            cond = or_(Contract.owner_id == user_id, Contract.tenant_id == user_id)
        return list(
            db.execute(
                select(Contract).where(cond).order_by(Contract.created_at.desc(), Contract.id)
            ).scalars().all()
        )

    def list_awaiting_tenant_past_deadline(self, db: Session, statuses, now) -> List[Contract]:
        return list(
            db.execute(
                select(Contract)
                .where(
                    Contract.status.in_([s.value for s in statuses]),
                    Contract.tenant_sign_deadline.is_not(None),
                    Contract.tenant_sign_deadline < now,
                )
                .order_by(Contract.tenant_sign_deadline)
                .with_for_update()
            ).scalars().all()
        )

    # ---------------------------
    # VERSIONS
    # ---------------------------

    def next_version(self, db: Session, contract_id: uuid.UUID) -> int:
        current = db.execute(
            select(func.max(ContractVersion.version)).where(
                ContractVersion.contract_id == contract_id
            )
        ).scalar_one()
        return (current or 0) + 1

    def snapshot(self, db: Session, contract: Contract, *, reason: Optional[str]) -> ContractVersion:
        """
        Archive the contract's current terms and signatures as the next
        version. Flushed, not committed.
        """
        version = ContractVersion(
            contract_id=contract.id,
            version=self.next_version(db, contract.id),
            contract_data=dict(contract.contract_data or {}),
            owner_signature=contract.owner_signature,
            tenant_signature=contract.tenant_signature,
            owner_signed_at=contract.owner_signed_at,
            tenant_signed_at=contract.tenant_signed_at,
            status=VersionStatus.superseded.value,
            modification_reason=reason,
        )
        db.add(version)
        db.flush()
        return version

    def list_versions(self, db: Session, contract_id: uuid.UUID) -> List[ContractVersion]:
        return list(
            db.execute(
                select(ContractVersion)
                .where(ContractVersion.contract_id == contract_id)
                .order_by(ContractVersion.version)
            ).scalars().all()
        )
