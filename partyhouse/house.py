# partyhouse/house.py
from __future__ import annotations

import random
from collections import Counter
from typing import Dict, List, Optional, Tuple

from partyhouse.config import COMEDIAN_BONUS, TROUBLE_LIMIT, WHITE_FLAG_MITIGATION
from partyhouse.models import AbilityKind, GameState, GuestInstance, Modification, PhaseEnd


def raw_trouble(state: GameState) -> int:
    return sum(g.trouble for g in state.house)


def has_white_flag(state: GameState) -> bool:
    return any(g.has_ability(AbilityKind.WHITE_FLAG) for g in state.house)


def trouble_count(state: GameState) -> int:
    """Trouble after White Flag. One flag or five, it only cancels one point."""
    raw = raw_trouble(state)
    if has_white_flag(state):
        return max(0, raw - WHITE_FLAG_MITIGATION)
    return raw


def star_count(state: GameState) -> int:
    return sum(g.star for g in state.house)


def is_full(state: GameState) -> bool:
    return len(state.house) >= state.house_capacity


def phase_end_trigger(state: GameState) -> Optional[PhaseEnd]:
    """Trouble wins over a full house when both hold."""
    if trouble_count(state) >= TROUBLE_LIMIT:
        return PhaseEnd.TROUBLE
    if is_full(state):
        return PhaseEnd.FULL
    return None


def available_pool(state: GameState) -> List[str]:
    """
    Owned type keys still invitable this party, one entry per copy.
    Copies already in the house are used up; kicked types are out entirely.
    """
    in_house = Counter(g.key for g in state.house)
    out: List[str] = []
    seen: Counter = Counter()
    for key in state.owned:
        if key in state.kicked_types:
            continue
        seen[key] += 1
        if seen[key] > in_house[key]:
            out.append(key)
    return out


def available_counts(state: GameState) -> Dict[str, int]:
    return dict(Counter(available_pool(state)))


def manual_invite_options(state: GameState) -> List[str]:
    """Distinct pool types with no copy currently in the house."""
    present = {g.key for g in state.house}
    out: List[str] = []
    for key in available_pool(state):
        if key not in present and key not in out:
            out.append(key)
    return out


def find_guest(state: GameState, instance_id: str) -> Optional[GuestInstance]:
    for g in state.house:
        if g.instance_id == instance_id:
            return g
    return None


def apply_modification(state: GameState, mod: Modification) -> int:
    """Apply to matching guests; returns how many matched (0 is fine)."""
    hits = 0
    for g in state.house:
        if mod.target_id is not None:
            if g.instance_id != mod.target_id:
                continue
        elif mod.target_type is None or g.key != mod.target_type:
            continue
        g.adjust(mod.property, mod.delta)
        hits += 1
    return hits


def recount_dancers(state: GameState) -> int:
    """Every dancer is worth the dancer head count (linear, not squared)."""
    dancers = [g for g in state.house if g.has_ability(AbilityKind.DANCER_SYNERGY)]
    for g in dancers:
        g.popularity = len(dancers)
    return len(dancers)


def apply_comedians(state: GameState) -> int:
    """On a full house each comedian is worth COMEDIAN_BONUS per comedian."""
    comedians = [g for g in state.house if g.has_ability(AbilityKind.COMEDIAN_SYNERGY)]
    if comedians and is_full(state):
        for g in comedians:
            g.popularity = COMEDIAN_BONUS * len(comedians)
    return len(comedians)


def tally(state: GameState) -> Tuple[int, int]:
    return (
        sum(g.popularity for g in state.house),
        sum(g.cash for g in state.house),
    )


def shuffle_house(rng: random.Random, state: GameState) -> None:
    rng.shuffle(state.house)
