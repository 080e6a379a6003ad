# rental_contracts/services/expiration_sweeper.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from rental_contracts.core.clock import Clock, SystemClock
from rental_contracts.core.contract_state_graph import AWAITING_TENANT_SIGNATURE, assert_transition
from rental_contracts.models.enums import (
    ChangeRequestKind,
    ChangeRequestStatus,
    ContractStatus,
    NotificationType,
    PropertyAvailability,
)
from rental_contracts.services.contract_store import ContractStore
from rental_contracts.services.notification_service import NotificationService
from rental_contracts.services.property_service import PropertyService
from rental_contracts.services.request_store import RequestStore

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired_contract_ids: List[str] = field(default_factory=list)
    reverted_contract_ids: List[str] = field(default_factory=list)

    @property
    def expired(self) -> int:
        return len(self.expired_contract_ids)

    @property
    def reverted(self) -> int:
        return len(self.reverted_contract_ids)


class ExpirationSweeper:
    """
    Forces deadline-driven transitions nobody else will trigger.

    Each tick, in one transaction with rows locked:
    - owner_signed / modification_in_progress past tenant_sign_deadline -> expired,
      property available, both parties notified, a pending re-sign request completed
    - waiting_for_modification whose accepted request's modification_deadline
      passed -> active again (terms were never altered), owner notified

    Tenant Sign checks its own deadline; the sweeper only cleans up.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.contracts = ContractStore()
        self.requests = RequestStore()
        self.properties = PropertyService()
        self.notifications = NotificationService()

    def run_once(self, db: Session) -> SweepResult:
        now = self.clock.now()
        result = SweepResult()
        # (user_id, title, message, type, related_id) sent after commit
        outbox: List[Tuple[str, str, str, NotificationType, str]] = []

        for contract in self.contracts.list_awaiting_tenant_past_deadline(db, AWAITING_TENANT_SIGNATURE, now):
            assert_transition(contract.status, ContractStatus.expired)
            prop = self.properties.lock(db, contract.property_id)

            was_modification = contract.status == ContractStatus.modification_in_progress.value
            contract.status = ContractStatus.expired.value
            contract.updated_at = now
            self.properties.set_availability(db, prop, PropertyAvailability.available, now=now)
            if was_modification:
                # the re-sign cycle ends with the contract
                req = self.requests.latest_with_status(
                    db,
                    contract.id,
                    ChangeRequestKind.modification,
                    ChangeRequestStatus.modification_in_progress,
                )
                if req is not None:
                    req.status = ChangeRequestStatus.completed.value
                    req.updated_at = now
            result.expired_contract_ids.append(str(contract.id))

            for user_id in (contract.tenant_id, contract.owner_id):
                outbox.append((
                    user_id,
                    "Contract expired",
                    "The contract expired because the tenant did not sign before the deadline.",
                    NotificationType.contract_expired,
                    str(contract.id),
                ))

        for candidate in self.requests.list_lapsed_accepted_modifications(db, now):
            # contract before request, same order as apply_modification
            contract = self.contracts.get_for_update(db, candidate.contract_id)
            req = self.requests.get_for_update(db, candidate.id)
            if req.status != ChangeRequestStatus.accepted.value or req.modification_deadline >= now:
                continue
            req.status = ChangeRequestStatus.completed.value
            req.updated_at = now
            if contract.status != ContractStatus.waiting_for_modification.value:
                continue
            assert_transition(contract.status, ContractStatus.active)

            contract.status = ContractStatus.active.value
            contract.modification_summary = "Modification window lapsed - original terms remain in force"
            contract.updated_at = now
            result.reverted_contract_ids.append(str(contract.id))

            outbox.append((
                contract.owner_id,
                "Modification window closed",
                "The modification window expired before changes were applied. The contract stays active with its original terms.",
                NotificationType.contract_modification_lapsed,
                str(contract.id),
            ))

        db.commit()

        logger.info(
            "expiration_sweep_completed",
            extra={"expired": result.expired, "reverted": result.reverted, "cutoff": now.isoformat()},
        )

        for user_id, title, message, ntype, related_id in outbox:
            self.notifications.notify(
                db, user_id=user_id, title=title, message=message, type=ntype, related_id=related_id
            )
        return result


async def run_forever(
    session_factory: Callable[[], Session],
    interval_seconds: int,
    *,
    sweeper: Optional[ExpirationSweeper] = None,
) -> None:
    """
    Background loop started from the app lifespan. A failed tick is logged
    and the loop keeps going; cancellation stops it.
    """
    sweeper = sweeper or ExpirationSweeper()
    logger.info("expiration_sweeper_started", extra={"interval_seconds": interval_seconds})
    while True:
        try:
            await asyncio.to_thread(_tick, session_factory, sweeper)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("expiration_sweep_failed")
        await asyncio.sleep(interval_seconds)


def _tick(session_factory: Callable[[], Session], sweeper: ExpirationSweeper) -> SweepResult:
    db = session_factory()
    try:
        return sweeper.run_once(db)
    finally:
        db.close()
