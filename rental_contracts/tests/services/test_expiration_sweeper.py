from sqlalchemy import update

from rental_contracts.models.change_request import ContractChangeRequest
from rental_contracts.models.enums import (
    ChangeRequestStatus,
    ChangeResponse,
    ContractStatus,
    NotificationType,
    PropertyAvailability,
)
from rental_contracts.models.property import Property
from rental_contracts.tests.factories import (
    OWNER,
    TENANT,
    make_active,
    make_owner_signed,
    notifications_for,
)


def test_sweeper_expires_unsigned_contract_after_deadline(db, lifecycle, sweeper, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=3, minutes=1)

    result = sweeper.run_once(db)

    assert result.expired_contract_ids == [str(c.id)]
    c = lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER)
    assert c.status == ContractStatus.expired.value
    assert db.get(Property, c.property_id).status == PropertyAvailability.available.value
    assert len(notifications_for(db, OWNER, NotificationType.contract_expired)) == 1
    assert len(notifications_for(db, TENANT, NotificationType.contract_expired)) == 1


def test_sweeper_leaves_contracts_within_deadline(db, lifecycle, sweeper, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=2, hours=23)

    result = sweeper.run_once(db)

    assert result.expired == 0
    assert lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER).status == ContractStatus.owner_signed.value


def test_sweeper_ignores_active_contracts(db, lifecycle, sweeper, clock):
    c = make_active(db, lifecycle)
    clock.advance(days=30)

    result = sweeper.run_once(db)

    assert result.expired == 0 and result.reverted == 0
    assert lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER).status == ContractStatus.active.value


def test_sweeper_expires_resigned_modification(db, lifecycle, change_requests, sweeper, clock):
    c = make_active(db, lifecycle)
    req = change_requests.request_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_reason="r", fields_to_modify=["deposit"]
    )
    change_requests.respond_to_modification(db, request_id=req.id, actor_id=TENANT, response=ChangeResponse.accepted)
    lifecycle.apply_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_request_id=req.id,
        modifications={"deposit": "9000.00"}, owner_signature="o2",
    )
    clock.advance(days=4)

    result = sweeper.run_once(db)

    assert result.expired_contract_ids == [str(c.id)]
    assert lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER).status == ContractStatus.expired.value
    db.refresh(req)
    assert req.status == ChangeRequestStatus.completed.value


def test_sweeper_reverts_lapsed_modification_window(db, lifecycle, change_requests, sweeper, clock):
    c = make_active(db, lifecycle)
    req = change_requests.request_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_reason="r", fields_to_modify=["deposit"]
    )
    change_requests.respond_to_modification(db, request_id=req.id, actor_id=TENANT, response=ChangeResponse.accepted)
    original = dict(lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER).contract_data)
    clock.advance(hours=25)

    result = sweeper.run_once(db)

    assert result.reverted_contract_ids == [str(c.id)]
    c = lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER)
    assert c.status == ContractStatus.active.value
    assert c.contract_data == original
    db.refresh(req)
    assert req.status == ChangeRequestStatus.completed.value
    assert len(notifications_for(db, OWNER, NotificationType.contract_modification_lapsed)) == 1

    # second tick finds nothing left to do
    again = sweeper.run_once(db)
    assert again.reverted == 0


def test_expired_contract_can_be_redrafted(db, lifecycle, sweeper, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=5)
    sweeper.run_once(db)

    c = lifecycle.modify_contract_draft(
        db, contract_id=c.id, actor_id=OWNER, contract_data={"tenantName": "Sara Benali", "monthlyRent": "4400"}
    )

    assert c.status == ContractStatus.draft.value
    assert c.owner_signature is None


def _lapsed_window(db, lifecycle, change_requests, clock):
    c = make_active(db, lifecycle)
    req = change_requests.request_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_reason="r", fields_to_modify=["deposit"]
    )
    change_requests.respond_to_modification(db, request_id=req.id, actor_id=TENANT, response=ChangeResponse.accepted)
    clock.advance(hours=25)
    return c, req


def test_lapsed_window_locks_contract_before_request(db, lifecycle, change_requests, sweeper, clock, monkeypatch):
    _lapsed_window(db, lifecycle, change_requests, clock)
    locked = []
    lock_contract = sweeper.contracts.get_for_update
    lock_request = sweeper.requests.get_for_update

    def contract_for_update(session, contract_id):
        locked.append("contract")
        return lock_contract(session, contract_id)

    def request_for_update(session, request_id):
        locked.append("request")
        return lock_request(session, request_id)

    monkeypatch.setattr(sweeper.contracts, "get_for_update", contract_for_update)
    monkeypatch.setattr(sweeper.requests, "get_for_update", request_for_update)

    result = sweeper.run_once(db)

    assert result.reverted == 1
    assert locked == ["contract", "request"]


def test_lapsed_window_skips_request_answered_meanwhile(db, lifecycle, change_requests, sweeper, clock, monkeypatch):
    c, req = _lapsed_window(db, lifecycle, change_requests, clock)
    list_lapsed = sweeper.requests.list_lapsed_accepted_modifications

    def list_then_complete(session, now):
        rows = list_lapsed(session, now)
        # another transaction closes the request before the sweeper locks it
        session.execute(
            update(ContractChangeRequest)
            .where(ContractChangeRequest.id == req.id)
            .values(status=ChangeRequestStatus.completed.value)
        )
        return rows

    monkeypatch.setattr(sweeper.requests, "list_lapsed_accepted_modifications", list_then_complete)

    result = sweeper.run_once(db)

    assert result.reverted == 0
    assert lifecycle.get_contract(db, contract_id=c.id, actor_id=OWNER).status == (
        ContractStatus.waiting_for_modification.value
    )
    assert notifications_for(db, OWNER, NotificationType.contract_modification_lapsed) == []
