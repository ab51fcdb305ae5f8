"""Venue invitations: create, validate by code, accept, decline, cancel, expiry."""

from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from conftest import assert_association_invariant
from venue_sync.core.errors import (
    AlreadyAssociated,
    AlreadyTerminal,
    CapacityExceeded,
    Expired,
    InvalidInput,
    NotFound,
    SyncError,
)
from venue_sync.models import Restaurant, VenueActivity, VenueInvitation
from venue_sync.services import association, invitations


def _invite(ctx, venue, **kwargs):
    kwargs.setdefault("restaurant_name", "Taco Stand")
    kwargs.setdefault("contact_email", "tacos@example.com")
    return invitations.create_venue_invitation(ctx, venue_id=venue.id, **kwargs)


class TestCreate:
    def test_create_invitation(self, make_ctx, manager, venue, clock):
        created = _invite(make_ctx(manager), venue, personal_message="Come <join> us")
        inv = created.invitation

        assert inv.status == "pending"
        assert len(inv.invite_code) == invitations.INVITE_CODE_LENGTH
        assert set(inv.invite_code) <= set(invitations.INVITE_CODE_ALPHABET)
        assert inv.personal_message == "Come join us"
        assert inv.venue_name == venue.name
        assert inv.created_by_user_id == manager.id
        assert (inv.expires_at - inv.created_at).days == 7

    def test_link_carries_code(self, make_ctx, manager, venue):
        created = _invite(make_ctx(manager), venue)
        url = urlparse(created.invitation_link)
        assert url.path.endswith("/venue-invitation.html")
        assert parse_qs(url.query) == {"invite": [created.invitation.invite_code]}

    def test_missing_defaults_are_filled(self, make_ctx, make_venue, manager):
        bare = make_venue("Bare Hall", address=None, city=None, state=None)
        inv = _invite(make_ctx(manager), bare).invitation
        assert inv.venue_address == "Address not provided"
        assert inv.venue_city == "City not provided"
        assert inv.venue_description == "No description provided"

    @pytest.mark.parametrize(
        "fields",
        [
            {"restaurant_name": "   "},
            {"contact_email": "not-an-email"},
            {"contact_email": ""},
        ],
    )
    def test_invalid_input(self, make_ctx, manager, venue, fields):
        with pytest.raises(InvalidInput):
            _invite(make_ctx(manager), venue, **fields)

    def test_unknown_venue(self, make_ctx, manager):
        with pytest.raises(NotFound):
            invitations.create_venue_invitation(
                make_ctx(manager), venue_id=404, restaurant_name="X", contact_email="x@example.com"
            )

    def test_code_collision_is_retried(self, make_ctx, manager, venue, monkeypatch):
        codes = iter(["AAAAAAAA", "AAAAAAAA", "BBBBBBBB"])
        monkeypatch.setattr(invitations, "generate_invite_code", lambda: next(codes))

        first = _invite(make_ctx(manager), venue).invitation
        second = _invite(make_ctx(manager), venue, restaurant_name="Other").invitation

        assert first.invite_code == "AAAAAAAA"
        assert second.invite_code == "BBBBBBBB"

    def test_gives_up_after_repeated_collisions(self, make_ctx, manager, venue, monkeypatch):
        monkeypatch.setattr(invitations, "generate_invite_code", lambda: "CCCCCCCC")
        _invite(make_ctx(manager), venue)
        with pytest.raises(SyncError):
            _invite(make_ctx(manager), venue)

    def test_code_can_be_reused_once_not_pending(self, make_ctx, manager, venue, monkeypatch):
        monkeypatch.setattr(invitations, "generate_invite_code", lambda: "DDDDDDDD")
        first = _invite(make_ctx(manager), venue).invitation
        invitations.cancel_invitation(make_ctx(manager), invitation_id=first.id)

        second = _invite(make_ctx(manager), venue).invitation
        assert second.invite_code == "DDDDDDDD"
        assert second.id != first.id

    def test_create_logs_activity(self, make_ctx, db_session, manager, venue):
        created = _invite(make_ctx(manager), venue)
        row = db_session.scalars(select(VenueActivity).where(VenueActivity.title == "Invitation Sent")).one()
        assert row.meta["invitationId"] == created.invitation.id


class TestValidate:
    def test_valid_code(self, make_ctx, manager, venue):
        inv = _invite(make_ctx(manager), venue).invitation
        found = invitations.validate_invite_code(make_ctx(), code=inv.invite_code.lower())
        assert found is not None
        assert found.id == inv.id

    @pytest.mark.parametrize("code", ["", "ABC", "ABCDEFGHIJ", None])
    def test_malformed_code(self, make_ctx, code):
        assert invitations.validate_invite_code(make_ctx(), code=code) is None

    def test_unknown_code(self, make_ctx, manager, venue):
        _invite(make_ctx(manager), venue)
        assert invitations.validate_invite_code(make_ctx(), code="ZZZZZZZ9") is None

    def test_expired_code_is_flipped(self, make_ctx, db_session, manager, venue, clock):
        inv = _invite(make_ctx(manager), venue).invitation
        clock.advance(days=7, milliseconds=1)

        assert invitations.validate_invite_code(make_ctx(), code=inv.invite_code) is None

        stored = db_session.get(VenueInvitation, inv.id, populate_existing=True)
        assert stored.status == "expired"
        assert stored.expired_at is not None

    def test_not_yet_expired_at_the_boundary(self, make_ctx, manager, venue, clock):
        inv = _invite(make_ctx(manager), venue).invitation
        clock.advance(days=7)
        assert invitations.validate_invite_code(make_ctx(), code=inv.invite_code) is not None

    def test_lookup_error_gives_none(self, make_ctx, manager, venue, monkeypatch):
        inv = _invite(make_ctx(manager), venue).invitation

        def broken(ctx, code):
            raise RuntimeError("db down")

        monkeypatch.setattr(invitations, "_pending_by_code", broken)
        assert invitations.validate_invite_code(make_ctx(), code=inv.invite_code) is None


class TestAccept:
    def test_accept(self, make_ctx, db_session, manager, owner, venue, restaurant):
        inv = _invite(make_ctx(manager), venue).invitation

        accepted = invitations.accept_venue_invitation(
            make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id
        )

        assert accepted.status == "accepted"
        assert accepted.restaurant_id == restaurant.id
        assert accepted.accepted_by_user_id == owner.id
        r = db_session.get(Restaurant, restaurant.id, populate_existing=True)
        assert r.venue_id == venue.id
        assert r.sync_method == "venue_invitation"
        assert_association_invariant(r)

    def test_accept_expired(self, make_ctx, db_session, manager, owner, venue, restaurant, clock):
        inv = _invite(make_ctx(manager), venue).invitation
        clock.advance(days=8)

        with pytest.raises(Expired):
            invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)

        assert db_session.get(VenueInvitation, inv.id, populate_existing=True).status == "expired"
        assert db_session.get(Restaurant, restaurant.id, populate_existing=True).venue_id is None

    def test_accept_when_already_associated(
        self, make_ctx, make_venue, db_session, manager, owner, admin, venue, restaurant
    ):
        association.sync_restaurant_to_venue(
            make_ctx(admin), restaurant_id=restaurant.id, venue_id=make_venue("Elsewhere").id
        )
        inv = _invite(make_ctx(manager), venue).invitation

        with pytest.raises(AlreadyAssociated):
            invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)
        assert db_session.get(VenueInvitation, inv.id, populate_existing=True).status == "pending"

    def test_accept_into_full_venue(self, make_ctx, make_venue, make_restaurant, manager, owner, admin, restaurant):
        full = make_venue("Full", manager_user_id=manager.id, max_restaurants=1)
        association.sync_restaurant_to_venue(
            make_ctx(admin), restaurant_id=make_restaurant("Resident").id, venue_id=full.id
        )
        inv = _invite(make_ctx(manager), full).invitation

        with pytest.raises(CapacityExceeded):
            invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)

    def test_accept_unknown_restaurant_keeps_invitation_pending(self, make_ctx, db_session, manager, owner, venue):
        inv = _invite(make_ctx(manager), venue).invitation
        with pytest.raises(NotFound):
            invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=999)
        assert db_session.get(VenueInvitation, inv.id, populate_existing=True).status == "pending"

    @pytest.mark.parametrize("first", ["cancel", "decline"])
    def test_accept_after_other_terminal(self, make_ctx, db_session, manager, owner, venue, restaurant, first):
        inv = _invite(make_ctx(manager), venue).invitation
        if first == "cancel":
            invitations.cancel_invitation(make_ctx(manager), invitation_id=inv.id)
        else:
            invitations.decline_venue_invitation(make_ctx(owner), invitation_id=inv.id)

        with pytest.raises(AlreadyTerminal):
            invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)
        assert db_session.get(Restaurant, restaurant.id, populate_existing=True).venue_id is None

    def test_accepted_code_no_longer_validates(self, make_ctx, manager, owner, venue, restaurant):
        inv = _invite(make_ctx(manager), venue).invitation
        invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)
        assert invitations.validate_invite_code(make_ctx(), code=inv.invite_code) is None


class TestDeclineCancel:
    def test_decline(self, make_ctx, db_session, manager, owner, venue, restaurant):
        inv = _invite(make_ctx(manager), venue).invitation
        declined = invitations.decline_venue_invitation(make_ctx(owner), invitation_id=inv.id)

        assert declined.status == "declined"
        assert declined.declined_by_user_id == owner.id
        assert db_session.get(Restaurant, restaurant.id, populate_existing=True).venue_id is None

    def test_cancel_twice(self, make_ctx, manager, venue):
        inv = _invite(make_ctx(manager), venue).invitation
        invitations.cancel_invitation(make_ctx(manager), invitation_id=inv.id)
        with pytest.raises(AlreadyTerminal) as exc:
            invitations.cancel_invitation(make_ctx(manager), invitation_id=inv.id)
        assert exc.value.status == "cancelled"

    def test_expire_after_accept_is_a_noop(self, make_ctx, manager, owner, venue, restaurant):
        inv = _invite(make_ctx(manager), venue).invitation
        invitations.accept_venue_invitation(make_ctx(owner), invitation_id=inv.id, restaurant_id=restaurant.id)
        assert invitations.expire_invitation(make_ctx(), inv.id) is False

    def test_get_invitation_missing(self, make_ctx):
        with pytest.raises(NotFound):
            invitations.get_invitation(make_ctx(), 12345)


def test_venue_invitations_listing(make_ctx, manager, venue, clock):
    ctx = make_ctx(manager)
    ids = []
    for n in range(3):
        ids.append(_invite(ctx, venue, restaurant_name=f"R{n}").invitation.id)
        clock.advance(minutes=1)
    invitations.cancel_invitation(ctx, invitation_id=ids[0])

    everything = invitations.get_venue_invitations(ctx, venue_id=venue.id)
    assert [i.id for i in everything] == list(reversed(ids))

    pending = invitations.get_venue_invitations(ctx, venue_id=venue.id, status="pending")
    assert {i.id for i in pending} == set(ids[1:])

    assert len(invitations.get_venue_invitations(ctx, venue_id=venue.id, limit=1)) == 1
