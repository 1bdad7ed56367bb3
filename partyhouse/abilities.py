# partyhouse/abilities.py
from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from partyhouse.models import (
    AutoInvite,
    ComedianSynergy,
    DancerSynergy,
    EffectSet,
    GuestDefinition,
    GuestInstance,
    Kick,
    ManualInvite,
    ManualReshuffle,
    Modification,
    Modify,
    Peek,
    Reshuffle,
    Synergy,
    Target,
    WhiteFlag,
)

logger = logging.getLogger(__name__)


def invite_candidates(
    house: Sequence[GuestInstance],
    pool: Sequence[GuestDefinition],
    filter_type: Optional[str] = None,
) -> List[GuestDefinition]:
    """Pool guests whose type is not already in the house, optionally by category."""
    present = {g.key for g in house}
    out = [d for d in pool if d.key not in present]
    if filter_type:
        out = [d for d in out if d.category == filter_type]
    return out


def _matches(guest: GuestInstance, ability: Synergy) -> bool:
    if ability.with_type:
        return guest.category == ability.with_type
    if ability.with_name:
        return guest.name == ability.with_name
    return False


def resolve(
    *,
    rng: random.Random,
    guest: GuestInstance,
    house: Sequence[GuestInstance],
    pool: Sequence[GuestDefinition],
) -> EffectSet:
    """
    Work out what `guest` does on joining the house.

    Abilities fire in declaration order and add into one EffectSet.
    Nothing is mutated here: invites are suggestions the engine still
    has to fit into the house, and an empty pool just means no invite.
    """
    effects = EffectSet()

    for ability in guest.abilities:
        if isinstance(ability, AutoInvite):
            candidates = invite_candidates(house, pool, ability.filter_type)
            if candidates:
                pick = rng.choice(candidates)
                effects.invites.append(pick.key)
                logger.debug("%s suggests inviting %s", guest.name, pick.key)

        elif isinstance(ability, Synergy):
            # presence only; more matches do not scale the bonus
            others = (g for g in house if g.instance_id != guest.instance_id)
            if any(_matches(g, ability) for g in others):
                effects.modifications.append(
                    Modification(
                        property=ability.bonus_property,
                        delta=ability.bonus_value,
                        target_id=guest.instance_id,
                    )
                )

        elif isinstance(ability, DancerSynergy):
            effects.dancer_recount = True

        elif isinstance(ability, Reshuffle):
            effects.reshuffle = True

        elif isinstance(ability, Modify):
            if ability.target is Target.SELF:
                effects.modifications.append(
                    Modification(ability.property, ability.value, target_id=guest.instance_id)
                )
            else:
                for other in house:
                    if other.instance_id != guest.instance_id:
                        effects.modifications.append(
                            Modification(ability.property, ability.value, target_id=other.instance_id)
                        )

        elif isinstance(ability, (ComedianSynergy, WhiteFlag)):
            # passive; read by the engine at reward / trouble time
            continue

        elif isinstance(ability, (ManualReshuffle, Kick, ManualInvite, Peek)):
            # player-triggered
            continue

        else:
            raise TypeError(f"Unhandled ability: {ability!r}")

    return effects
