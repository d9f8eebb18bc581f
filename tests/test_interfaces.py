from __future__ import annotations

from chronogarden import ActionStatus, ProgressionEngine, default_catalog, initial_state
from chronogarden.interfaces.advisor import (
    ADVICE_ERROR_TEXT,
    AdvisoryResponse,
    HeuristicAdvisor,
    build_request,
    request_advice,
)
from chronogarden.interfaces.leaderboard import (
    InMemoryLeaderboard,
    LeaderboardRecord,
    fetch_leaderboard,
    push_record,
)
from chronogarden.interfaces.market import InMemoryMarket, MarketListing, fetch_listings, list_item
from chronogarden.runtime.actions import PlantCrop, SetPlayerName


class _BrokenClient:
    def submit(self, record):
        raise ConnectionError("offline")

    def fetch(self, limit):
        raise ConnectionError("offline")

    def create_listing(self, listing):
        raise ConnectionError("offline")

    def open_listings(self, limit):
        raise ConnectionError("offline")

    def suggest(self, request):
        raise TimeoutError("advisor timed out")


class _EchoAdvisor:
    def __init__(self):
        self.requests = []

    def suggest(self, request):
        self.requests.append(request)
        return AdvisoryResponse(suggestion_text=f"Focus on {request.era_id}.")


def _named_engine() -> ProgressionEngine:
    engine = ProgressionEngine(default_catalog(), seed=2)
    engine.dispatch(SetPlayerName(name="Ada"), now=0.0)
    return engine


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


def test_leaderboard_ranks_by_harvests_then_prestige():
    board = InMemoryLeaderboard()
    for player_id, name, crops, prestige in [
        ("p1", "Ada", 40, 0),
        ("p2", "Bo", 90, 1),
        ("p3", "Cy", 40, 2),
    ]:
        state = initial_state(default_catalog())
        state.player_name = name
        state.total_crops_harvested = crops
        state.prestige_count = prestige
        assert push_record(board, state, player_id).ok

    outcome = fetch_leaderboard(board, limit=10)
    assert outcome.ok
    assert [record.name for record in outcome.records] == ["Bo", "Cy", "Ada"]


def test_leaderboard_resubmission_replaces_the_old_record():
    board = InMemoryLeaderboard()
    state = initial_state(default_catalog())
    push_record(board, state, "p1")
    state.total_crops_harvested = 12
    push_record(board, state, "p1")
    records = fetch_leaderboard(board).records
    assert records == [LeaderboardRecord.from_state(state, "p1")]


def test_leaderboard_failures_are_reported_not_raised():
    state = initial_state(default_catalog())
    assert push_record(_BrokenClient(), state, "p1").ok is False
    outcome = fetch_leaderboard(_BrokenClient())
    assert outcome.ok is False
    assert "offline" in outcome.error


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


def test_listing_a_resource_debits_it():
    engine = _named_engine()
    market = InMemoryMarket()
    outcome = list_item(engine, market, item_type="resource", item_id="Water", quantity=20, price=15, now=5.0)
    assert outcome.ok
    assert outcome.listing.listing_id == "listing-1"
    assert outcome.listing.seller_name == "Ada"
    assert engine.state.resources["Water"] == 30.0
    assert [listing.item_id for listing in fetch_listings(market).listings] == ["Water"]


def test_failed_listing_is_rolled_back():
    engine = _named_engine()
    engine.state.rare_seeds.append("sunflower")
    outcome = list_item(engine, _BrokenClient(), item_type="seed", item_id="sunflower", quantity=3, price=99, now=5.0)
    assert outcome.ok is False
    assert outcome.rolled_back
    assert engine.state.rare_seeds == ["sunflower"]

    outcome = list_item(engine, _BrokenClient(), item_type="resource", item_id="Sunlight", quantity=40, price=5, now=6.0)
    assert outcome.rolled_back
    assert engine.state.resources["Sunlight"] == 50.0


def test_listing_rejections():
    engine = ProgressionEngine(default_catalog(), seed=2)
    market = InMemoryMarket()
    unnamed = list_item(engine, market, item_type="resource", item_id="Water", quantity=1, price=1, now=0.0)
    assert unnamed.status is ActionStatus.NAME_REQUIRED

    engine.dispatch(SetPlayerName(name="Ada"), now=0.0)
    free = list_item(engine, market, item_type="resource", item_id="Water", quantity=1, price=0, now=0.0)
    assert free.status is ActionStatus.INVALID_AMOUNT
    too_much = list_item(engine, market, item_type="resource", item_id="Water", quantity=500, price=1, now=0.0)
    assert too_much.status is ActionStatus.CANNOT_AFFORD
    unowned = list_item(engine, market, item_type="seed", item_id="photonbloom", quantity=1, price=1, now=0.0)
    assert unowned.status is ActionStatus.CANNOT_AFFORD
    nan_price = list_item(engine, market, item_type="resource", item_id="Water", quantity=1, price=float("nan"), now=0.0)
    assert nan_price.status is ActionStatus.INVALID_AMOUNT
    odd = list_item(engine, market, item_type="pet", item_id="dodo", quantity=1, price=1, now=0.0)
    assert odd.status is ActionStatus.UNKNOWN_ITEM
    assert fetch_listings(market).listings == []
    assert engine.state.resources["Water"] == 50.0


def test_listings_are_newest_first():
    engine = _named_engine()
    market = InMemoryMarket()
    list_item(engine, market, item_type="resource", item_id="Water", quantity=1, price=1, now=10.0)
    list_item(engine, market, item_type="resource", item_id="Sunlight", quantity=1, price=1, now=20.0)
    assert [listing.item_id for listing in fetch_listings(market).listings] == ["Sunlight", "Water"]


def test_listing_fetch_failure_is_reported_not_raised():
    outcome = fetch_listings(_BrokenClient())
    assert outcome.ok is False
    assert outcome.listings == []
    assert "offline" in outcome.error


def test_malformed_listings_are_skipped():
    class _Rows:
        def open_listings(self, limit):
            good = MarketListing("resource", "Water", 2.0, 5.0, "Ada", 3.0).to_dict()
            return [good, {"item_type": "resource"}]

    outcome = fetch_listings(_Rows())
    assert outcome.ok
    assert [listing.item_id for listing in outcome.listings] == ["Water"]
    assert outcome.skipped == 1


def test_only_tradable_items_can_be_listed():
    engine = _named_engine()
    market = InMemoryMarket()
    engine.state.rare_seeds.append("mandrake")
    for item_type, item_id in [("seed", "mandrake"), ("resource", "Coins"), ("resource", "Tomato")]:
        outcome = list_item(engine, market, item_type=item_type, item_id=item_id, quantity=1, price=3, now=1.0)
        assert outcome.status is ActionStatus.NOT_TRADABLE
    assert engine.state.rare_seeds == ["mandrake"]
    assert engine.state.resources["Coins"] == 100.0
    assert fetch_listings(market).listings == []

    catalog = default_catalog()
    assert catalog.is_tradable("seed", "tomato")
    assert catalog.is_tradable("resource", "Water")
    assert not catalog.is_tradable("resource", "EnergyCredits")
    assert not catalog.is_tradable("seed", "nothing")


# ---------------------------------------------------------------------------
# Advisor
# ---------------------------------------------------------------------------


def test_advice_is_stored_on_success():
    engine = _named_engine()
    engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=1.0)
    advisor = _EchoAdvisor()
    outcome = request_advice(engine, advisor, now=2.0)
    assert outcome.ok
    assert engine.state.advisor_suggestion == "Focus on Present."
    request = advisor.requests[0]
    assert "Soil Quality: 74.5%." in request.crop_health_text
    assert "Carrot (planted)" in request.crop_health_text


def test_advisor_failure_leaves_error_text():
    engine = _named_engine()
    outcome = request_advice(engine, _BrokenClient(), now=2.0)
    assert outcome.ok is False
    assert "timed out" in outcome.error
    assert engine.state.advisor_suggestion == ADVICE_ERROR_TEXT


def test_heuristic_advisor_points_at_the_next_era():
    state = initial_state(default_catalog())
    advisor = HeuristicAdvisor(state, default_catalog())
    response = advisor.suggest(build_request(state, default_catalog()))
    assert "Primordial Jungle" in response.suggestion_text
    assert "plots are empty" in response.suggestion_text
