from __future__ import annotations

from datetime import datetime
from typing import Any

from venue_sync.models import Restaurant, Venue, VenueActivity, VenueInvitation, VenueRequest
from venue_sync.services.association import SyncStatus
from venue_sync.services.context import as_utc


def _ts(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def venue_out(v: Venue) -> dict[str, Any]:
    return {
        "id": v.id,
        "name": v.name,
        "description": v.description,
        "address": v.address,
        "city": v.city,
        "state": v.state,
        "status": v.status,
        "max_restaurants": v.max_restaurants,
        "require_approval": bool(v.require_approval),
    }


def restaurant_out(r: Restaurant) -> dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "email": r.email,
        "phone": r.phone,
        "cuisine_type": r.cuisine_type,
        "address": r.address,
        "city": r.city,
        "state": r.state,
        "venue_id": r.venue_id,
        "venue_name": r.venue_name,
        "venue_address": r.venue_address,
        "venue_status": r.venue_status,
        "sync_method": r.sync_method,
        "joined_venue_at": _ts(r.joined_venue_at),
        "left_venue_at": _ts(r.left_venue_at),
        "unsync_reason": r.unsync_reason,
    }


def request_out(r: VenueRequest) -> dict[str, Any]:
    return {
        "id": r.id,
        "restaurant_id": r.restaurant_id,
        "venue_id": r.venue_id,
        "restaurant": {
            "name": r.restaurant_name,
            "email": r.restaurant_email,
            "phone": r.restaurant_phone,
            "cuisine": r.restaurant_cuisine,
            "address": r.restaurant_address,
            "city": r.restaurant_city,
            "state": r.restaurant_state,
        },
        "venue": {
            "name": r.venue_name,
            "address": r.venue_address,
            "city": r.venue_city,
            "state": r.venue_state,
        },
        "status": r.status,
        "message": r.message,
        "requested_at": _ts(r.requested_at),
        "requested_by_user_id": r.requested_by_user_id,
        "expires_at": _ts(r.expires_at),
        "approved_at": _ts(r.approved_at),
        "denied_at": _ts(r.denied_at),
        "denial_reason": r.denial_reason,
        "cancelled_at": _ts(r.cancelled_at),
    }


def invitation_out(i: VenueInvitation, *, link: str | None = None) -> dict[str, Any]:
    out = {
        "id": i.id,
        "venue_id": i.venue_id,
        "venue": {
            "name": i.venue_name,
            "address": i.venue_address,
            "city": i.venue_city,
            "state": i.venue_state,
            "description": i.venue_description,
        },
        "restaurant_name": i.restaurant_name,
        "contact_email": i.contact_email,
        "personal_message": i.personal_message,
        "invite_code": i.invite_code,
        "status": i.status,
        "created_at": _ts(i.created_at),
        "expires_at": _ts(i.expires_at),
        "restaurant_id": i.restaurant_id,
        "accepted_at": _ts(i.accepted_at),
    }
    if link is not None:
        out["invitation_link"] = link
    return out


def activity_out(a: VenueActivity) -> dict[str, Any]:
    return {
        "id": a.id,
        "type": a.type,
        "title": a.title,
        "description": a.description,
        "metadata": a.meta or {},
        "created_by_user_id": a.created_by_user_id,
        "created_at": _ts(a.created_at),
    }


def sync_status_out(s: SyncStatus) -> dict[str, Any]:
    out: dict[str, Any] = {
        "is_associated": s.is_associated,
        "venue_id": s.venue_id,
        "venue_name": s.venue_name,
        "joined_at": _ts(s.joined_at),
        "sync_method": s.sync_method,
        "status": s.status,
    }
    if not s.is_associated:
        out["pending_requests"] = [request_out(r) for r in s.pending_requests]
    if s.error:
        out["error"] = s.error
    return out
