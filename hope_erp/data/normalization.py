"""Row normalization.

Different tiers return differently shaped rows for the same dataset:

1. "Details" rows (remote procedure, enriched view) carry flat display
   columns such as ``surgeon_first_name`` or ``hospital_name``.
2. Joined rows (select with embedded relations) carry nested objects such
   as ``{"hospital": {"name": ...}}``.
3. Raw table rows carry foreign-key ids only.

Each function here maps one of those shapes onto the canonical dataclass in
``models``, so screens never see which tier served them.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .models import (
    KPI,
    InventoryItem,
    KPIKind,
    Manufacturer,
    Opportunity,
    SurgeryCase,
)


# =============================================================================
# Scalar helpers
# =============================================================================


def to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Parse a numeric value (numbers may arrive as strings)."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    number = to_float(value)
    if number is None:
        return default
    return int(number)


def full_name(first: Optional[str], last: Optional[str]) -> Optional[str]:
    """Join first and last name; None when both are missing."""
    parts = [p.strip() for p in (first, last) if p and p.strip()]
    return " ".join(parts) if parts else None


def _nested(row: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Embedded relation object, or an empty dict when absent/null."""
    value = row.get(key)
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else {}


def _rows(payload: Any) -> Iterable[Dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    return payload


# =============================================================================
# Surgery cases
# =============================================================================


def surgery_case_from_details(row: Dict[str, Any]) -> SurgeryCase:
    """Row from the details RPC or the details view."""
    case = surgery_case_from_raw(row)
    case.surgeon_name = full_name(row.get("surgeon_first_name"), row.get("surgeon_last_name"))
    case.hospital_name = row.get("hospital_name")
    case.procedure_name = row.get("procedure_name")
    return case


def surgery_case_from_raw(row: Dict[str, Any]) -> SurgeryCase:
    """Row straight from the ``surgery_cases`` table."""
    return SurgeryCase(
        id=row["id"],
        case_number=row.get("case_number"),
        scheduled_at=row.get("scheduled_at"),
        status=row.get("status") or "scheduled",
        surgeon_id=row.get("surgeon_id"),
        hospital_id=row.get("hospital_id"),
        procedure_id=row.get("procedure_id"),
        region_id=row.get("region_id"),
        operating_room=row.get("operating_room"),
        estimated_cost=to_float(row.get("estimated_cost")),
        notes=row.get("notes"),
    )


def shape_surgery_case_details(payload: Any) -> List[SurgeryCase]:
    return [surgery_case_from_details(r) for r in _rows(payload)]


def shape_surgery_cases_raw(payload: Any) -> List[SurgeryCase]:
    return [surgery_case_from_raw(r) for r in _rows(payload)]


# =============================================================================
# Sales opportunities
# =============================================================================


def opportunity_from_raw(row: Dict[str, Any]) -> Opportunity:
    return Opportunity(
        id=row["id"],
        title=row.get("title") or "",
        stage=row.get("stage") or "lead",
        estimated_value=to_float(row.get("estimated_value"), 0.0),
        probability=to_float(row.get("probability"), 0.0),
        expected_close_date=row.get("expected_close_date"),
        hospital_id=row.get("hospital_id"),
        surgeon_id=row.get("surgeon_id"),
        rep_id=row.get("rep_id"),
        created_at=row.get("created_at"),
    )


def opportunity_from_joined(row: Dict[str, Any]) -> Opportunity:
    """Row with embedded ``hospital``, ``surgeon`` and ``rep`` objects."""
    opp = opportunity_from_raw(row)
    hospital = _nested(row, "hospital")
    surgeon = _nested(row, "surgeon")
    rep = _nested(row, "rep")
    opp.hospital_name = hospital.get("name")
    opp.surgeon_name = full_name(surgeon.get("first_name"), surgeon.get("last_name"))
    opp.rep_name = full_name(rep.get("first_name"), rep.get("last_name"))
    return opp


def shape_opportunities_joined(payload: Any) -> List[Opportunity]:
    return [opportunity_from_joined(r) for r in _rows(payload)]


def shape_opportunities_raw(payload: Any) -> List[Opportunity]:
    return [opportunity_from_raw(r) for r in _rows(payload)]


# =============================================================================
# Inventory
# =============================================================================


def manufacturer_from_row(row: Dict[str, Any]) -> Manufacturer:
    return Manufacturer(
        id=row["id"],
        name=row.get("name") or "",
        is_active=bool(row.get("is_active", True)),
    )


def inventory_item_from_raw(row: Dict[str, Any]) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        name=row.get("name") or "",
        sku=row.get("sku"),
        category=row.get("category"),
        price=to_float(row.get("price")),
        stock_quantity=to_int(row.get("stock_quantity")),
        manufacturer_id=row.get("manufacturer_id"),
        is_active=bool(row.get("is_active", True)),
    )


def inventory_item_from_joined(row: Dict[str, Any]) -> InventoryItem:
    item = inventory_item_from_raw(row)
    item.manufacturer_name = _nested(row, "manufacturer").get("name")
    return item


def shape_manufacturers(payload: Any) -> List[Manufacturer]:
    return [manufacturer_from_row(r) for r in _rows(payload)]


def shape_inventory_joined(payload: Any) -> List[InventoryItem]:
    return [inventory_item_from_joined(r) for r in _rows(payload)]


def shape_inventory_raw(payload: Any) -> List[InventoryItem]:
    return [inventory_item_from_raw(r) for r in _rows(payload)]


# =============================================================================
# Dashboard KPIs
# =============================================================================


def shape_dashboard_kpis(payload: Any) -> List[KPI]:
    """Flatten the KPI object into one row per indicator.

    The payload looks like ``{"surgeries_today": {"value": 3, "label": ...,
    "type": "number"}, ..., "last_updated": "..."}``. Some deployments wrap
    it in a one-element list.
    """
    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected KPI payload: {type(payload).__name__}")

    last_updated = payload.get("last_updated")
    kpis: List[KPI] = []
    for name, entry in payload.items():
        if not isinstance(entry, dict):
            continue
        kind = KPIKind.CURRENCY if entry.get("type") == "currency" else KPIKind.NUMBER
        kpis.append(
            KPI(
                name=name,
                label=entry.get("label") or name.replace("_", " ").title(),
                value=to_float(entry.get("value"), 0.0),
                kind=kind,
                last_updated=last_updated,
            )
        )
    return kpis
