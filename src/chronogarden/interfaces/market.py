"""Market adapter: list rare seeds or resources for other players.

Listing is a two-step affair.  The engine first debits the item locally
(``ListMarketItem``); only then is the listing sent to the market client.  If
the client fails, the debit is compensated with ``RestoreMarketItem`` so the
player never loses an item that was not actually listed.  Buying is not part
of the game core.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol

from ..runtime.actions import ListMarketItem, RestoreMarketItem
from ..runtime.results import ActionResult, ActionStatus
from .contracts import MARKET_LISTING_SCHEMA

if TYPE_CHECKING:
    from ..catalog import Catalog
    from ..runtime.engine import ProgressionEngine


@dataclass(frozen=True, slots=True)
class MarketListing:
    item_type: str
    item_id: str
    quantity: float
    price: float
    seller_name: str
    timestamp: float
    item_name: str = ""
    listing_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "MarketListing":
        MARKET_LISTING_SCHEMA.validate(payload)
        return cls(
            item_type=payload["item_type"],
            item_id=payload["item_id"],
            quantity=float(payload["quantity"]),
            price=float(payload["price"]),
            seller_name=payload["seller_name"],
            timestamp=float(payload["timestamp"]),
            item_name=payload.get("item_name") or "",
            listing_id=payload.get("listing_id"),
        )


def item_display_name(catalog: "Catalog", item_type: str, item_id: str) -> str:
    if item_type == "seed":
        crop = catalog.crop(item_id)
        return f"{crop.name if crop else item_id} Seed (Rare)"
    resource = catalog.resources.get(item_id)
    return resource.name if resource else item_id


class MarketClient(Protocol):
    def create_listing(self, listing: Mapping[str, Any]) -> str: ...

    def open_listings(self, limit: int) -> List[Mapping[str, Any]]: ...


class InMemoryMarket:
    def __init__(self) -> None:
        self._listings: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)

    def create_listing(self, listing: Mapping[str, Any]) -> str:
        MARKET_LISTING_SCHEMA.validate(listing)
        listing_id = f"listing-{next(self._ids)}"
        self._listings.append(dict(listing, listing_id=listing_id))
        return listing_id

    def open_listings(self, limit: int) -> List[Mapping[str, Any]]:
        newest = sorted(self._listings, key=lambda row: (-float(row["timestamp"]), row["listing_id"]))
        return [dict(row) for row in newest[: max(0, int(limit))]]


@dataclass(slots=True)
class MarketOutcome:
    ok: bool
    status: ActionStatus
    listing: Optional[MarketListing] = None
    error: Optional[str] = None
    rolled_back: bool = False
    result: Optional[ActionResult] = None


def list_item(
    engine: "ProgressionEngine",
    client: MarketClient,
    *,
    item_type: str,
    item_id: str,
    quantity: float,
    price: float,
    now: Optional[float] = None,
) -> MarketOutcome:
    if not (math.isfinite(price) and price > 0):
        return MarketOutcome(ok=False, status=ActionStatus.INVALID_AMOUNT, error="price must be positive and finite")
    if item_type == "seed":
        quantity = 1.0
    listed = engine.dispatch(ListMarketItem(item_type=item_type, item_id=item_id, quantity=quantity), now=now)
    if not listed.ok:
        return MarketOutcome(ok=False, status=listed.status, error=listed.message, result=listed)

    at = float(engine.clock() if now is None else now)
    listing = MarketListing(
        item_type=item_type,
        item_id=item_id,
        quantity=float(quantity),
        price=float(price),
        seller_name=listed.state.player_name,
        timestamp=at,
        item_name=item_display_name(engine.catalog, item_type, item_id),
    )
    try:
        listing_id = client.create_listing(listing.to_dict())
    except Exception as exc:  # collaborator failure stays at the boundary
        restored = engine.dispatch(RestoreMarketItem(item_type=item_type, item_id=item_id, quantity=quantity), now=now)
        return MarketOutcome(
            ok=False,
            status=listed.status,
            listing=listing,
            error=f"market listing failed: {exc}",
            rolled_back=restored.ok,
            result=restored,
        )
    return MarketOutcome(
        ok=True,
        status=listed.status,
        listing=MarketListing.from_mapping(dict(listing.to_dict(), listing_id=listing_id)),
        result=listed,
    )


@dataclass(slots=True)
class ListingsOutcome:
    ok: bool
    listings: List[MarketListing] = field(default_factory=list)
    skipped: int = 0
    error: Optional[str] = None


def fetch_listings(client: MarketClient, limit: int = 20) -> ListingsOutcome:
    """Open listings, newest first; malformed rows are skipped and counted."""

    try:
        rows = client.open_listings(limit)
    except Exception as exc:  # collaborator failure stays at the boundary
        return ListingsOutcome(ok=False, error=f"market fetch failed: {exc}")
    listings: List[MarketListing] = []
    skipped = 0
    for row in rows:
        try:
            listings.append(MarketListing.from_mapping(row))
        except (TypeError, ValueError):
            skipped += 1
    listings.sort(key=lambda listing: -listing.timestamp)
    return ListingsOutcome(ok=True, listings=listings, skipped=skipped)


__all__ = [
    "InMemoryMarket",
    "ListingsOutcome",
    "MarketClient",
    "MarketListing",
    "MarketOutcome",
    "fetch_listings",
    "item_display_name",
    "list_item",
]
