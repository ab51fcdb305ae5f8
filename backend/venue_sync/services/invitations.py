from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from venue_sync.core.errors import InvalidInput, NotFound, SyncError
from venue_sync.core.sanitize import is_valid_email, sanitize_input
from venue_sync.core.timing import timed
from venue_sync.models import InvitationStatus, VenueInvitation
from venue_sync.services import entities
from venue_sync.services.activity import log_venue
from venue_sync.services.association import (  # noqa: F401
    accept_venue_invitation,
    expire_invitation,
    is_expired,
)
from venue_sync.services.transitions import commit_transition

log = logging.getLogger("vedi.invitations")

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 8
INVITATION_PAGE = "venue-invitation.html"


@dataclass(frozen=True)
class CreatedInvitation:
    invitation: VenueInvitation
    invitation_link: str


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str | None) -> str:
    return (code or "").strip().upper()


def invitation_link(ctx, code: str) -> str:
    base = ctx.settings.INVITATION_LINK_BASE
    if not base.endswith("/"):
        base += "/"
    return f"{base}{INVITATION_PAGE}?{urlencode({'invite': code})}"


def _pending_by_code(ctx, code: str) -> VenueInvitation | None:
    return ctx.db.execute(
        select(VenueInvitation)
        .where(
            VenueInvitation.invite_code == code,
            VenueInvitation.status == InvitationStatus.PENDING.value,
        )
        .limit(1)
    ).scalar_one_or_none()


def _unused_code(ctx) -> str:
    for _ in range(ctx.settings.INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        if _pending_by_code(ctx, code) is None:
            return code
        log.warning("invite code collision, retrying")
    raise SyncError("Could not generate a unique invitation code")


def create_venue_invitation(
    ctx, *, venue_id: int, restaurant_name: str, contact_email: str, personal_message: str = ""
) -> CreatedInvitation:
    """Venue side: invite a restaurant (which may not have an account yet) by email."""
    with timed("create_venue_invitation"):
        venue = entities.require_venue(ctx, venue_id)

        name = sanitize_input(restaurant_name)
        email = sanitize_input(contact_email)
        if not name:
            raise InvalidInput("restaurant_name is required")
        if not is_valid_email(email):
            raise InvalidInput("contact_email is not a valid email address")

        now = ctx.now()
        for attempt in range(ctx.settings.INVITE_CODE_ATTEMPTS):
            invitation = VenueInvitation(
                venue_id=venue.id,
                venue_name=venue.name,
                venue_address=venue.address or "Address not provided",
                venue_city=venue.city or "City not provided",
                venue_state=venue.state or "State not provided",
                venue_description=venue.description or "No description provided",
                restaurant_name=name,
                contact_email=email,
                personal_message=sanitize_input(personal_message),
                invite_code=_unused_code(ctx),
                status=InvitationStatus.PENDING.value,
                created_at=now,
                created_by_user_id=ctx.actor_user_id,
                expires_at=now + timedelta(days=ctx.settings.INVITATION_TTL_DAYS),
            )
            try:
                ctx.db.add(invitation)
                ctx.db.commit()
                break
            except IntegrityError:
                # another writer took the code between the check and the insert
                ctx.db.rollback()
                log.warning("invite code taken on insert, attempt %s", attempt + 1)
        else:
            raise SyncError("Could not generate a unique invitation code")

        ctx.db.refresh(invitation)
        link = invitation_link(ctx, invitation.invite_code)
        log.info("invitation created invitation_id=%s venue_id=%s", invitation.id, venue_id)

    log_venue(
        ctx,
        venue_id,
        type="invitation",
        title="Invitation Sent",
        description=f"Invitation sent to {name}",
        metadata={
            "restaurantName": name,
            "contactEmail": email,
            "invitationId": invitation.id,
            "inviteCode": invitation.invite_code,
        },
    )
    return CreatedInvitation(invitation=invitation, invitation_link=link)


def validate_invite_code(ctx, *, code: str) -> VenueInvitation | None:
    """Look up the pending invitation behind a code.

    An invitation found past its expiry is flipped to ``expired`` here and
    ``None`` is returned. Lookup problems also give ``None``.
    """
    code = normalize_invite_code(code)
    if len(code) != INVITE_CODE_LENGTH:
        return None
    try:
        invitation = _pending_by_code(ctx, code)
        if invitation is None:
            return None
        if is_expired(ctx, invitation):
            expire_invitation(ctx, invitation.id)
            return None
        return invitation
    except Exception as e:
        log.exception("invite code validation failed: %s", e)
        ctx.db.rollback()
        return None


def decline_venue_invitation(ctx, *, invitation_id: int) -> VenueInvitation:
    """Restaurant side: say no. Nothing changes for the restaurant itself."""
    with timed("decline_venue_invitation"):
        commit_transition(
            ctx,
            VenueInvitation,
            invitation_id,
            to_status=InvitationStatus.DECLINED.value,
            values={"declined_at": ctx.now(), "declined_by_user_id": ctx.actor_user_id},
        )
        invitation = ctx.db.get(VenueInvitation, invitation_id, populate_existing=True)
        log.info("invitation declined invitation_id=%s", invitation_id)

    log_venue(
        ctx,
        invitation.venue_id,
        type="invitation",
        title="Invitation Declined",
        description=f"{invitation.restaurant_name} declined the venue invitation",
        metadata={"restaurantName": invitation.restaurant_name, "invitationId": invitation_id},
    )
    return invitation


def cancel_invitation(ctx, *, invitation_id: int) -> VenueInvitation:
    """Venue side: withdraw an invitation that is still pending."""
    with timed("cancel_invitation"):
        commit_transition(
            ctx,
            VenueInvitation,
            invitation_id,
            to_status=InvitationStatus.CANCELLED.value,
            values={"cancelled_at": ctx.now(), "cancelled_by_user_id": ctx.actor_user_id},
        )
        invitation = ctx.db.get(VenueInvitation, invitation_id, populate_existing=True)
        log.info("invitation cancelled invitation_id=%s", invitation_id)

    log_venue(
        ctx,
        invitation.venue_id,
        type="invitation",
        title="Invitation Cancelled",
        description=f"Invitation to {invitation.restaurant_name} was cancelled",
        metadata={"restaurantName": invitation.restaurant_name, "invitationId": invitation_id},
    )
    return invitation


def get_invitation(ctx, invitation_id: int) -> VenueInvitation:
    invitation = ctx.db.get(VenueInvitation, invitation_id, populate_existing=True)
    if invitation is None:
        raise NotFound("Invitation not found")
    return invitation


def get_venue_invitations(
    ctx, *, venue_id: int, status: str | None = None, limit: int | None = None
) -> list[VenueInvitation]:
    stmt = select(VenueInvitation).where(VenueInvitation.venue_id == venue_id)
    if status:
        stmt = stmt.where(VenueInvitation.status == status)
    stmt = stmt.order_by(VenueInvitation.created_at.desc(), VenueInvitation.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(ctx.db.scalars(stmt).all())
