import pytest

from venue_sync.core.errors import AlreadyAssociated, CapacityExceeded, DuplicateRequest
from venue_sync.services import association, eligibility, entities, requests
from venue_sync.services.eligibility import (
    REASON_ALREADY_ASSOCIATED,
    REASON_AT_CAPACITY,
    REASON_LOOKUP_FAILED,
    REASON_PENDING_REQUEST,
    REASON_RESTAURANT_NOT_FOUND,
    REASON_VENUE_NOT_FOUND,
)


def test_eligible(make_ctx, restaurant, venue):
    result = eligibility.check_eligibility(make_ctx(), restaurant_id=restaurant.id, venue_id=venue.id)
    assert result.eligible is True
    assert result.reasons == []


def test_missing_restaurant_and_venue(make_ctx):
    result = eligibility.check_eligibility(make_ctx(), restaurant_id=1, venue_id=2)
    assert result.eligible is False
    assert result.reasons == [REASON_RESTAURANT_NOT_FOUND, REASON_VENUE_NOT_FOUND]


def test_reports_every_failing_reason(make_ctx, make_venue, make_restaurant, admin, owner, restaurant):
    home = make_venue("Home", max_restaurants=1, require_approval=True)
    association.sync_restaurant_to_venue(make_ctx(admin), restaurant_id=restaurant.id, venue_id=home.id)

    result = eligibility.check_eligibility(make_ctx(), restaurant_id=restaurant.id, venue_id=home.id)
    assert result.eligible is False
    assert REASON_ALREADY_ASSOCIATED in result.reasons
    assert REASON_AT_CAPACITY in result.reasons

    newcomer = make_restaurant("Newcomer", owner_user_id=owner.id)
    other = make_venue("Other", max_restaurants=5, require_approval=True)
    requests.request_to_join_venue(make_ctx(owner), restaurant_id=newcomer.id, venue_id=other.id)
    result = eligibility.check_eligibility(make_ctx(), restaurant_id=newcomer.id, venue_id=other.id)
    assert result.reasons == [REASON_PENDING_REQUEST]


def test_store_failure_means_not_eligible(make_ctx, restaurant, venue, monkeypatch):
    def broken(ctx, restaurant_id):
        raise RuntimeError("db down")

    monkeypatch.setattr(entities, "get_restaurant", broken)
    result = eligibility.check_eligibility(make_ctx(), restaurant_id=restaurant.id, venue_id=venue.id)
    assert result.eligible is False
    assert result.reasons == [REASON_LOOKUP_FAILED]


@pytest.mark.parametrize("scenario", ["associated", "full", "pending"])
def test_ineligible_means_the_write_fails_too(
    make_ctx, make_venue, make_restaurant, admin, owner, manager, restaurant, scenario
):
    target = make_venue("Target", manager_user_id=manager.id, max_restaurants=1, require_approval=True)
    if scenario == "associated":
        association.sync_restaurant_to_venue(
            make_ctx(admin), restaurant_id=restaurant.id, venue_id=make_venue("Home").id
        )
        expected = AlreadyAssociated
    elif scenario == "full":
        association.sync_restaurant_to_venue(
            make_ctx(admin), restaurant_id=make_restaurant("Resident").id, venue_id=target.id
        )
        expected = CapacityExceeded
    else:
        requests.request_to_join_venue(make_ctx(owner), restaurant_id=restaurant.id, venue_id=target.id)
        expected = DuplicateRequest

    assert eligibility.check_eligibility(make_ctx(), restaurant_id=restaurant.id, venue_id=target.id).eligible is False

    if expected is CapacityExceeded:
        request = requests.request_to_join_venue(make_ctx(owner), restaurant_id=restaurant.id, venue_id=target.id)
        with pytest.raises(expected):
            requests.approve_restaurant_request(make_ctx(manager), request_id=request.id)
    else:
        with pytest.raises(expected):
            requests.request_to_join_venue(make_ctx(owner), restaurant_id=restaurant.id, venue_id=target.id)
