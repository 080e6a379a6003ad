import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from rental_contracts.core.security import create_access_token
from rental_contracts.db.session import get_db
from rental_contracts.main import app
from rental_contracts.models.audit_log import AuditLog
from rental_contracts.models.enums import OfferStatus
from rental_contracts.tests.factories import OWNER, TENANT, create_offer, create_property

API = "/api/v1"


def auth(user_id: str, role: str) -> dict:
    token = create_access_token(subject=user_id, claims={"role": role, "display_name": user_id})
    return {"Authorization": f"Bearer {token}"}


OWNER_H = auth(OWNER, "owner")
TENANT_H = auth(TENANT, "tenant")


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _active_contract(client, db) -> str:
    prop = create_property(db)
    offer = create_offer(db, prop, status=OfferStatus.accepted)

    r = client.put(f"{API}/offers/{offer.id}/request-contract", headers=TENANT_H)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "contract_requested"

    r = client.post(f"{API}/contracts", json={"offerId": str(offer.id), "contractData": {"tenantCin": "AB1"}},
                    headers=OWNER_H)
    assert r.status_code == 201, r.text
    cid = r.json()["contractId"]

    r = client.put(f"{API}/contracts/{cid}/sign", json={"signatureType": "owner", "signatureData": "o"},
                   headers=OWNER_H)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "owner_signed"

    r = client.put(f"{API}/contracts/{cid}/sign", json={"signatureType": "tenant", "signatureData": "t"},
                   headers=TENANT_H)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "active"
    return cid


def test_health(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers.get("X-Request-Id")


def test_requires_bearer_token(client):
    r = client.get(f"{API}/contracts")
    assert r.status_code in (401, 403)

    r = client.get(f"{API}/contracts", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_full_signature_flow_and_download(client, db):
    cid = _active_contract(client, db)

    r = client.get(f"{API}/contracts/{cid}/download", headers=TENANT_H)
    assert r.status_code == 200
    assert r.json()["filename"].startswith(f"contrat_{cid}_")

    r = client.get(f"{API}/contracts", headers=OWNER_H, params={"ownerOnly": "true"})
    assert [c["contractId"] for c in r.json()["contracts"]] == [cid]

    actions = db.execute(select(AuditLog.action).where(AuditLog.contract_id == cid)).scalars().all()
    assert "CONTRACT_CREATED" in actions
    assert "CONTRACT_SIGNED_TENANT" in actions


def test_error_statuses(client, db):
    cid = _active_contract(client, db)

    # not the contract owner -> 403
    r = client.post(f"{API}/contracts/{cid}/request-termination", json={"reason": "r"}, headers=TENANT_H)
    assert r.status_code == 403

    # already signed -> 409
    r = client.put(f"{API}/contracts/{cid}/sign", json={"signatureType": "tenant", "signatureData": "t"},
                   headers=TENANT_H)
    assert r.status_code == 409

    # unknown contract -> 404
    r = client.get(f"{API}/contracts/00000000-0000-0000-0000-000000000000", headers=OWNER_H)
    assert r.status_code == 404

    # malformed id -> 400
    r = client.get(f"{API}/contracts/not-a-uuid", headers=OWNER_H)
    assert r.status_code == 400

    # bad field vocabulary -> 422
    r = client.post(f"{API}/contracts/{cid}/request-modification",
                    json={"modificationReason": "r", "fieldsToModify": ["colour"]}, headers=OWNER_H)
    assert r.status_code == 422


def test_modification_round_trip_over_http(client, db):
    cid = _active_contract(client, db)

    r = client.post(
        f"{API}/contracts/{cid}/request-modification",
        json={"modificationReason": "Indexation", "fieldsToModify": ["monthly_rent"]},
        headers=OWNER_H,
    )
    assert r.status_code == 201, r.text
    rid = r.json()["requestId"]

    r = client.get(f"{API}/contracts/{cid}/pending-requests", headers=TENANT_H)
    assert [x["requestId"] for x in r.json()["requests"]] == [rid]

    r = client.put(f"{API}/change-requests/{rid}/respond", json={"response": "accepted"}, headers=TENANT_H)
    assert r.status_code == 200, r.text
    assert r.json()["modificationDeadlineIso"]

    # answering twice is a conflict
    r = client.put(f"{API}/change-requests/{rid}/respond", json={"response": "rejected"}, headers=TENANT_H)
    assert r.status_code == 409

    r = client.post(
        f"{API}/contracts/{cid}/apply-modification",
        json={"modificationRequestId": rid, "modifications": {"monthly_rent": "4800.00"}, "ownerSignature": "o2"},
        headers=OWNER_H,
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "modification_in_progress"

    r = client.get(f"{API}/contracts/{cid}/versions", headers=OWNER_H)
    versions = r.json()["versions"]
    assert [v["version"] for v in versions] == [1, 2]
    assert versions[-1]["isCurrent"] is True

    r = client.get(f"{API}/users/me/change-requests", headers=TENANT_H, params={"kind": "modification"})
    assert [x["requestId"] for x in r.json()["requests"]] == [rid]


def test_notifications_polling(client, db):
    _active_contract(client, db)

    r = client.get(f"{API}/notifications", headers=OWNER_H)
    assert r.status_code == 200
    notes = r.json()["notifications"]
    assert any(n["type"] == "contract_active" for n in notes)

    nid = notes[0]["notificationId"]
    r = client.put(f"{API}/notifications/{nid}/read", headers=OWNER_H)
    assert r.status_code == 200
    assert r.json()["read"] is True

    # someone else's notification
    r = client.put(f"{API}/notifications/{nid}/read", headers=TENANT_H)
    assert r.status_code == 403


def test_signature_side_must_match_token_role(client, db):
    prop = create_property(db)
    offer = create_offer(db, prop)
    r = client.post(f"{API}/contracts", json={"offerId": str(offer.id)}, headers=OWNER_H)
    cid = r.json()["contractId"]

    r = client.put(f"{API}/contracts/{cid}/sign", json={"signatureType": "tenant", "signatureData": "x"},
                   headers=OWNER_H)
    assert r.status_code == 403
