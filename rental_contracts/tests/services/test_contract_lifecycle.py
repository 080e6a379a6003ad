import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from rental_contracts.core.errors import (
    AuthorizationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from rental_contracts.models.enums import (
    ContractStatus,
    NotificationType,
    OfferStatus,
    PropertyAvailability,
    UserRole,
)
from rental_contracts.models.property import Property
from rental_contracts.tests.factories import (
    OWNER,
    TENANT,
    create_offer,
    create_property,
    make_active,
    make_draft,
    make_owner_signed,
    notifications_for,
)


# ─────────────────────────────────────────────
# create
# ─────────────────────────────────────────────

def test_create_contract_from_requested_offer(db, lifecycle):
    prop = create_property(db)
    offer = create_offer(db, prop)

    c = lifecycle.create_contract(
        db,
        offer_id=offer.id,
        actor_id=OWNER,
        contract_data={"tenantName": "Sara Benali", "monthlyRent": "4800.00"},
    )

    assert c.status == ContractStatus.draft.value
    assert c.owner_signature is None and c.tenant_signature is None
    assert c.tenant_id == TENANT and c.owner_id == OWNER
    # offer terms as defaults, caller payload on top
    assert c.contract_data["startDate"] == "2025-02-01"
    assert c.contract_data["deposit"] == "4500.00"
    assert c.contract_data["propertyTitle"] == "Appartement Centre Ville"
    assert c.contract_data["monthlyRent"] == "4800.00"
    assert c.contract_data["tenantName"] == "Sara Benali"

    assert len(notifications_for(db, TENANT, NotificationType.contract)) == 1


def test_create_requires_contract_requested_offer(db, lifecycle):
    prop = create_property(db)
    offer = create_offer(db, prop, status=OfferStatus.accepted)

    with pytest.raises(ValidationError):
        lifecycle.create_contract(db, offer_id=offer.id, actor_id=OWNER)


def test_create_unknown_offer(db, lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.create_contract(db, offer_id=uuid.uuid4(), actor_id=OWNER)


def test_create_only_by_offer_owner(db, lifecycle):
    prop = create_property(db)
    offer = create_offer(db, prop)

    with pytest.raises(AuthorizationError):
        lifecycle.create_contract(db, offer_id=offer.id, actor_id=TENANT)


def test_create_rejected_while_property_has_active_contract(db, lifecycle):
    prop = create_property(db)
    make_active(db, lifecycle, prop=prop)
    offer = create_offer(db, prop, tenant_id="tenant-2")

    with pytest.raises(ConflictError):
        lifecycle.create_contract(db, offer_id=offer.id, actor_id=OWNER)


# ─────────────────────────────────────────────
# sign
# ─────────────────────────────────────────────

def test_owner_sign_sets_deadline_and_notifies_tenant(db, lifecycle, clock):
    c = make_draft(db, lifecycle)

    c = lifecycle.sign_contract(db, contract_id=c.id, actor_id=OWNER,
                                signer_role=UserRole.OWNER, signature="sig-owner")

    assert c.status == ContractStatus.owner_signed.value
    assert c.owner_signature == "sig-owner"
    assert c.owner_signed_at == clock.now()
    assert c.tenant_sign_deadline == clock.now() + timedelta(days=3)

    notes = notifications_for(db, TENANT, NotificationType.contract_signature_required)
    assert len(notes) == 1
    assert "2025-01-04" in notes[0].message


def test_sign_rejects_blank_signature(db, lifecycle):
    c = make_draft(db, lifecycle)

    with pytest.raises(ValidationError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id=OWNER,
                                signer_role=UserRole.OWNER, signature="   ")


def test_sign_by_wrong_party(db, lifecycle):
    c = make_draft(db, lifecycle)

    with pytest.raises(AuthorizationError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id=TENANT,
                                signer_role=UserRole.OWNER, signature="sig")

    with pytest.raises(AuthorizationError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id="stranger",
                                signer_role=UserRole.TENANT, signature="sig")


def test_owner_cannot_sign_twice(db, lifecycle):
    c = make_owner_signed(db, lifecycle)

    with pytest.raises(ConflictError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id=OWNER,
                                signer_role=UserRole.OWNER, signature="again")


def test_tenant_cannot_sign_draft(db, lifecycle):
    c = make_draft(db, lifecycle)

    with pytest.raises(ConflictError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id=TENANT,
                                signer_role=UserRole.TENANT, signature="sig-tenant")


def test_tenant_sign_activates_and_rents_property(db, lifecycle, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=2)

    c = lifecycle.sign_contract(db, contract_id=c.id, actor_id=TENANT,
                                signer_role=UserRole.TENANT, signature="sig-tenant")

    assert c.status == ContractStatus.active.value
    assert c.tenant_signed_at == clock.now()
    assert db.get(Property, c.property_id).status == PropertyAvailability.rented.value
    assert len(notifications_for(db, OWNER, NotificationType.contract_active)) == 1


def test_tenant_sign_after_deadline_is_expired_error(db, lifecycle, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=3, seconds=1)

    with pytest.raises(ExpiredError):
        lifecycle.sign_contract(db, contract_id=c.id, actor_id=TENANT,
                                signer_role=UserRole.TENANT, signature="late")

    db.rollback()
    c = lifecycle.get_contract(db, contract_id=c.id, actor_id=TENANT)
    assert c.status == ContractStatus.owner_signed.value
    assert c.tenant_signature is None


def test_tenant_sign_exactly_at_deadline_is_accepted(db, lifecycle, clock):
    c = make_owner_signed(db, lifecycle)
    clock.advance(days=3)

    c = lifecycle.sign_contract(db, contract_id=c.id, actor_id=TENANT,
                                signer_role=UserRole.TENANT, signature="sig-tenant")
    assert c.status == ContractStatus.active.value


def test_second_activation_on_same_property_conflicts(db, lifecycle):
    prop = create_property(db)
    first = make_owner_signed(db, lifecycle, prop=prop, tenant_id="tenant-a")
    second = make_owner_signed(db, lifecycle, prop=prop, tenant_id="tenant-b")

    lifecycle.sign_contract(db, contract_id=first.id, actor_id="tenant-a",
                            signer_role=UserRole.TENANT, signature="a")

    with pytest.raises(ConflictError):
        lifecycle.sign_contract(db, contract_id=second.id, actor_id="tenant-b",
                                signer_role=UserRole.TENANT, signature="b")

    db.rollback()
    assert lifecycle.get_contract(db, contract_id=second.id, actor_id="tenant-b").status == \
        ContractStatus.owner_signed.value


def test_database_rejects_two_active_contracts_per_property(db, lifecycle):
    prop = create_property(db)
    first = make_draft(db, lifecycle, prop=prop, tenant_id="tenant-a")
    second = make_draft(db, lifecycle, prop=prop, tenant_id="tenant-b")

    for c, sig in ((first, "a"), (second, "b")):
        c.owner_signature = "o"
        c.tenant_signature = sig
        c.status = ContractStatus.active.value

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_database_rejects_tenant_signature_without_owner_signature(db, lifecycle):
    c = make_draft(db, lifecycle)
    c.tenant_signature = "sneaky"

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


# ─────────────────────────────────────────────
# modify directly (before tenant signature)
# ─────────────────────────────────────────────

def test_modify_draft_resets_owner_signature(db, lifecycle):
    c = make_owner_signed(db, lifecycle)

    c = lifecycle.modify_contract_draft(
        db, contract_id=c.id, actor_id=OWNER, contract_data={"tenantName": "S. Benali", "monthlyRent": "4600"}
    )

    assert c.status == ContractStatus.draft.value
    assert c.owner_signature is None
    assert c.owner_signed_at is None
    assert c.tenant_sign_deadline is None
    assert c.contract_data == {"tenantName": "S. Benali", "monthlyRent": "4600"}
    assert lifecycle.contracts.list_versions(db, c.id) == []
    assert len(notifications_for(db, TENANT, NotificationType.contract_modified)) == 1


def test_modify_draft_after_tenant_signature_conflicts(db, lifecycle):
    c = make_active(db, lifecycle)

    with pytest.raises(ConflictError):
        lifecycle.modify_contract_draft(db, contract_id=c.id, actor_id=OWNER, contract_data={"x": 1})


def test_modify_draft_owner_only(db, lifecycle):
    c = make_draft(db, lifecycle)

    with pytest.raises(AuthorizationError):
        lifecycle.modify_contract_draft(db, contract_id=c.id, actor_id=TENANT, contract_data={"x": 1})


# ─────────────────────────────────────────────
# reads / export
# ─────────────────────────────────────────────

def test_get_contract_parties_only(db, lifecycle):
    c = make_draft(db, lifecycle)

    assert lifecycle.get_contract(db, contract_id=c.id, actor_id=TENANT).id == c.id
    with pytest.raises(AuthorizationError):
        lifecycle.get_contract(db, contract_id=c.id, actor_id="stranger")
    with pytest.raises(NotFoundError):
        lifecycle.get_contract(db, contract_id=uuid.uuid4(), actor_id=OWNER)


def test_list_contracts_owner_only(db, lifecycle):
    make_draft(db, lifecycle)
    other_prop = create_property(db, owner_id=TENANT, title="Studio")
    make_draft(db, lifecycle, prop=other_prop, tenant_id="someone-else")

    assert len(lifecycle.list_contracts(db, actor_id=TENANT)) == 2
    assert len(lifecycle.list_contracts(db, actor_id=TENANT, owner_only=True)) == 1


def test_export_requires_active_contract(db, lifecycle):
    c = make_owner_signed(db, lifecycle)

    with pytest.raises(ConflictError):
        lifecycle.export_contract(db, contract_id=c.id, actor_id=OWNER)


def test_export_descriptor(db, lifecycle):
    c = make_active(db, lifecycle)

    d = lifecycle.export_contract(db, contract_id=c.id, actor_id=TENANT)

    assert d["filename"] == f"contrat_{c.id}_Appartement_Centre_Ville.pdf"
    assert d["downloadUrl"].endswith(f"/contracts/{c.id}/pdf")

    with pytest.raises(AuthorizationError):
        lifecycle.export_contract(db, contract_id=c.id, actor_id="stranger")
