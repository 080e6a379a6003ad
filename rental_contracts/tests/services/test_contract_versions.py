import pytest

from rental_contracts.core.errors import ImmutabilityViolationError
from rental_contracts.models.enums import ChangeResponse, ContractStatus
from rental_contracts.tests.factories import OWNER, TENANT, make_active, make_draft


def _modified_once(db, lifecycle, change_requests):
    c = make_active(db, lifecycle)
    req = change_requests.request_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_reason="Nouveau loyer", fields_to_modify=["monthly_rent"]
    )
    change_requests.respond_to_modification(db, request_id=req.id, actor_id=TENANT, response=ChangeResponse.accepted)
    return lifecycle.apply_modification(
        db, contract_id=c.id, actor_id=OWNER, modification_request_id=req.id,
        modifications={"monthly_rent": "5000.00"},
    )


def test_versions_of_unmodified_contract_is_current_only(db, lifecycle):
    c = make_draft(db, lifecycle)

    versions = lifecycle.list_contract_versions(db, contract_id=c.id, actor_id=TENANT)

    assert len(versions) == 1
    assert versions[0]["is_current"] is True
    assert versions[0]["version"] == 1
    assert versions[0]["status"] == ContractStatus.draft.value


def test_versions_list_archived_then_current(db, lifecycle, change_requests):
    c = _modified_once(db, lifecycle, change_requests)

    versions = lifecycle.list_contract_versions(db, contract_id=c.id, actor_id=OWNER)

    assert [v["version"] for v in versions] == [1, 2]
    archived, current = versions
    assert archived["status"] == "superseded"
    assert archived["is_current"] is False
    assert archived["contract_data"]["monthlyRent"] == "4500.00"
    assert current["is_current"] is True
    assert current["status"] == ContractStatus.draft.value
    assert current["contract_data"]["monthlyRent"] == "5000.00"


def test_archived_version_cannot_be_updated(db, lifecycle, change_requests):
    c = _modified_once(db, lifecycle, change_requests)
    v1 = lifecycle.contracts.list_versions(db, c.id)[0]

    v1.contract_data = {"tampered": True}
    with pytest.raises(ImmutabilityViolationError):
        db.commit()
    db.rollback()


def test_archived_version_cannot_be_deleted(db, lifecycle, change_requests):
    c = _modified_once(db, lifecycle, change_requests)
    v1 = lifecycle.contracts.list_versions(db, c.id)[0]

    db.delete(v1)
    with pytest.raises(ImmutabilityViolationError):
        db.commit()
    db.rollback()
