# rental_contracts/core/modification_fields.py
"""
Closed vocabulary of contract fields an owner may ask to change, and where
each one lands inside the contract document.

    fields_to_modify value   payload key(s)              contract_data key
    ----------------------   -------------------------   -----------------
    tenant_name              tenant_name                 tenantName
    tenant_cin               tenant_cin                  tenantCin
    tenant_address           tenant_address              propertyAddress
    monthly_rent             monthly_rent                monthlyRent
    deposit                  deposit                     deposit
    contract_duration        start_date, end_date        startDate, endDate
    special_conditions       special_conditions          specialConditions
    payment_terms            payment_terms               paymentDueDate
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from rental_contracts.core.errors import ValidationError
from rental_contracts.models.enums import ModificationField

FIELD_MAPPING: Dict[ModificationField, Dict[str, str]] = {
    ModificationField.tenant_name: {"tenant_name": "tenantName"},
    ModificationField.tenant_cin: {"tenant_cin": "tenantCin"},
    # the tenant's address is stored on the property line of the lease
    ModificationField.tenant_address: {"tenant_address": "propertyAddress"},
    ModificationField.monthly_rent: {"monthly_rent": "monthlyRent"},
    ModificationField.deposit: {"deposit": "deposit"},
    ModificationField.contract_duration: {"start_date": "startDate", "end_date": "endDate"},
    ModificationField.special_conditions: {"special_conditions": "specialConditions"},
    ModificationField.payment_terms: {"payment_terms": "paymentDueDate"},
}


def parse_fields(fields: Iterable[str]) -> List[ModificationField]:
    """
    Validates a fields_to_modify list: non-empty, known values only,
    duplicates dropped (order kept).
    """
    out: List[ModificationField] = []
    for f in fields or []:
        try:
            field = ModificationField(f)
        except ValueError:
            raise ValidationError(f"Unknown modification field: {f}")
        if field not in out:
            out.append(field)
    if not out:
        raise ValidationError("At least one field to modify is required.")
    return out


def apply_modifications(
    contract_data: Dict[str, Any],
    modifications: Dict[str, Any],
    agreed_fields: Iterable[str],
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Returns (new contract document, contract_data keys written).

    Only payload keys belonging to an agreed field are applied; everything
    else in `modifications` is ignored. None values are skipped.
    """
    updated = dict(contract_data or {})
    written: List[str] = []
    for field in parse_fields(agreed_fields):
        for payload_key, data_key in FIELD_MAPPING[field].items():
            if payload_key not in modifications or modifications[payload_key] is None:
                continue
            updated[data_key] = modifications[payload_key]
            written.append(data_key)
    return updated, written
