"""
Appointment Assembler

Builds the stored shape of an appointment from resolved entities.
Names and contact details are copied at booking time so later edits to a
client or team member do not rewrite past appointments.
"""

import secrets
import string
from datetime import date as Date
from typing import Any, Dict, List, Optional, Sequence

REFERENCE_ALPHABET = string.digits + string.ascii_uppercase
REFERENCE_LENGTH = 10


def generate_reference() -> str:
    """Random 10-character booking reference, e.g. ``7K2M9QX0AB``."""
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))


def snapshot_services(services: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "serviceId": service["id"],
            "name": service["name"],
            "duration": service["duration"],
            "price": service["price"],
        }
        for service in services
    ]


def snapshot_package(package: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if package is None:
        return None
    return {
        "packageId": package["id"],
        "name": package["name"],
        "duration": package["duration"],
        "price": package["price"],
        "services": [
            {
                "serviceId": item.get("serviceId"),
                "name": item.get("name"),
                "duration": item.get("duration"),
                "price": item.get("price"),
            }
            for item in package.get("services") or []
        ],
    }


def snapshot_client(client: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "client_id": client["id"],
        "client_name": client["name"],
        "client_email": client.get("email") or "",
        "client_phone": client.get("phone_number") or "",
    }


def snapshot_team_member(team_member: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "team_member_id": team_member["id"],
        "team_member_name": team_member["name"],
    }


def snapshot_category(category: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if category is None:
        return {"category_id": None, "category_name": None}
    return {"category_id": category["id"], "category_name": category["name"]}


def assemble(
    client: Dict[str, Any],
    team_member: Dict[str, Any],
    category: Optional[Dict[str, Any]],
    services: Sequence[Dict[str, Any]],
    package: Optional[Dict[str, Any]],
    business_id: str,
    date: Date,
    end_date: Date,
    start_time: str,
    end_time: str,
    total_duration: int,
    total_price: float,
    discount: Optional[float],
    actor_user_id: str,
    currency: str,
    status: str = "PENDING",
    notes: str = "",
    created_via: str = "business",
) -> Dict[str, Any]:
    """
    Normalized appointment record ready for insertion.

    ``total_duration``/``total_price`` are expected to already reflect
    package precedence; service snapshots are kept for display either way.
    ``final_price`` is ``total_price - discount``.
    """
    discount_amount = discount or 0

    return {
        "reference": generate_reference(),
        "business_id": business_id,
        **snapshot_client(client),
        **snapshot_team_member(team_member),
        **snapshot_category(category),
        "date": date,
        "end_date": end_date,
        "start_time": start_time,
        "end_time": end_time,
        "duration": total_duration,
        "services": snapshot_services(services),
        "package": snapshot_package(package),
        "total_price": total_price,
        "discount": discount_amount,
        "final_price": total_price - discount_amount,
        "currency": currency,
        "payment_status": "PENDING",
        "status": status,
        "notes": notes,
        "created_via": created_via,
        "created_by": actor_user_id,
        "updated_by": actor_user_id,
    }
