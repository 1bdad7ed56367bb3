# partyhouse/shop.py
from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, List, Optional

from partyhouse.catalog import GuestCatalog
from partyhouse.config import (
    CAPACITY_MAX,
    PURCHASE_LIMIT,
    SHOP_SIZE,
    SHOP_STAR_SLOTS,
    UPGRADE_COST_BASE,
    UPGRADE_COST_CAP,
)
from partyhouse.models import GameState, PurchaseResult, Rejection

logger = logging.getLogger(__name__)


def generate_shop_pool(
    rng: random.Random,
    catalog: GuestCatalog,
    exclude: Iterable[str] = (),
) -> List[str]:
    """
    Pick the shop's SHOP_SIZE types for the whole game:
      - SHOP_STAR_SLOTS distinct star types first
      - the rest sampled from everything left, star or not
    Starting types (`exclude`) never show up.
    """
    skip = set(exclude)
    keys = [k for k in catalog.keys() if k not in skip]
    stars = [k for k in keys if catalog.get(k).star > 0]

    if len(stars) < SHOP_STAR_SLOTS:
        raise ValueError(
            f"Need at least {SHOP_STAR_SLOTS} star guest types, catalog has {len(stars)}")
    if len(keys) < SHOP_SIZE:
        raise ValueError(
            f"Need at least {SHOP_SIZE} shop guest types, catalog has {len(keys)}")

    picked_stars = rng.sample(stars, SHOP_STAR_SLOTS)
    rest = [k for k in keys if k not in picked_stars]
    pool = picked_stars + rng.sample(rest, SHOP_SIZE - SHOP_STAR_SLOTS)
    rng.shuffle(pool)
    return pool


def upgrade_cost(upgrades_so_far: int) -> int:
    """2, 3, 4, ... flattening out at 12."""
    return min(UPGRADE_COST_BASE + upgrades_so_far, UPGRADE_COST_CAP)


def purchase_count(state: GameState, key: str) -> int:
    return state.purchase_counts.get(key, 0)


def purchase_block(state: GameState, catalog: GuestCatalog, key: str) -> Optional[Rejection]:
    """Why `key` cannot be bought right now, or None if it can."""
    if key not in state.shop_pool:
        return Rejection.NOT_IN_SHOP
    d = catalog.get(key)
    if d.star == 0 and purchase_count(state, key) >= PURCHASE_LIMIT:
        return Rejection.PURCHASE_LIMIT_REACHED
    if state.popularity < d.cost:
        return Rejection.INSUFFICIENT_FUNDS
    return None


def buy_guest(state: GameState, catalog: GuestCatalog, key: str) -> PurchaseResult:
    reason = purchase_block(state, catalog, key)
    if reason is not None:
        return PurchaseResult(reason=reason, key=key)

    cost = catalog.get(key).cost
    state.popularity -= cost
    state.owned.append(key)
    state.purchase_counts[key] = purchase_count(state, key) + 1
    logger.info("Bought %s for %s popularity (%s owned)", key, cost, state.purchase_counts[key])
    return PurchaseResult(key=key, spent=cost)


def upgrade_capacity(state: GameState) -> PurchaseResult:
    if state.house_capacity >= CAPACITY_MAX:
        return PurchaseResult(reason=Rejection.CAPACITY_MAXED)

    cost = upgrade_cost(state.capacity_upgrades)
    if state.cash < cost:
        return PurchaseResult(reason=Rejection.INSUFFICIENT_FUNDS)

    state.cash -= cost
    state.house_capacity += 1
    state.capacity_upgrades += 1
    logger.info("House capacity now %s (paid %s cash)", state.house_capacity, cost)
    return PurchaseResult(spent=cost)


def shop_listing(state: GameState, catalog: GuestCatalog) -> List[Dict[str, object]]:
    """Per shop type: definition plus how many were bought and whether it can be now."""
    out = []
    for key in state.shop_pool:
        d = catalog.get(key)
        reason = purchase_block(state, catalog, key)
        out.append({
            "key": key,
            "definition": d,
            "bought": purchase_count(state, key),
            "limit": None if d.star > 0 else PURCHASE_LIMIT,
            "purchasable": reason is None,
            "reason": reason,
        })
    return out
