# rental_contracts/tests/factories.py
import uuid
from datetime import date
from decimal import Decimal

from rental_contracts.models.enums import OfferStatus, UserRole
from rental_contracts.models.offer import Offer
from rental_contracts.models.property import Property

OWNER = "owner-1"
TENANT = "tenant-1"


def create_property(db, owner_id=OWNER, title="Appartement Centre Ville"):
    p = Property(
        id=uuid.uuid4(),
        owner_id=owner_id,
        title=title,
        address="12 Rue de la Paix",
        status="available",
    )
    db.add(p)
    db.commit()
    return p


def create_offer(db, prop, tenant_id=TENANT, status=OfferStatus.contract_requested):
    o = Offer(
        id=uuid.uuid4(),
        property_id=prop.id,
        tenant_id=tenant_id,
        owner_id=prop.owner_id,
        start_date=date(2025, 2, 1),
        end_date=date(2026, 1, 31),
        monthly_rent=Decimal("4500.00"),
        deposit=None,
        conditions="No pets",
        status=status.value,
    )
    db.add(o)
    db.commit()
    return o


def make_draft(db, lifecycle, prop=None, tenant_id=TENANT, contract_data=None):
    prop = prop or create_property(db)
    offer = create_offer(db, prop, tenant_id=tenant_id)
    return lifecycle.create_contract(
        db,
        offer_id=offer.id,
        actor_id=prop.owner_id,
        contract_data=contract_data or {"tenantName": "Sara Benali", "tenantCin": "AB123456"},
    )


def make_owner_signed(db, lifecycle, prop=None, tenant_id=TENANT):
    c = make_draft(db, lifecycle, prop=prop, tenant_id=tenant_id)
    return lifecycle.sign_contract(db, contract_id=c.id, actor_id=c.owner_id,
                                   signer_role=UserRole.OWNER, signature="sig-owner")


def make_active(db, lifecycle, prop=None, tenant_id=TENANT):
    c = make_owner_signed(db, lifecycle, prop=prop, tenant_id=tenant_id)
    return lifecycle.sign_contract(db, contract_id=c.id, actor_id=c.tenant_id,
                                   signer_role=UserRole.TENANT, signature="sig-tenant")


def notifications_for(db, user_id, ntype=None):
    from sqlalchemy import select
    from rental_contracts.models.notification import Notification

    q = select(Notification).where(Notification.user_id == user_id)
    if ntype is not None:
        q = q.where(Notification.type == ntype.value)
    return list(db.execute(q).scalars().all())
