import itertools
import random
import unittest

from partyhouse.abilities import invite_candidates, resolve
from partyhouse.catalog import default_catalog
from partyhouse.models import Modification, Property

CATALOG = default_catalog()
_ids = itertools.count(1)


def guest(key):
    g = CATALOG.instantiate(key)
    g.instance_id = f"t_{next(_ids)}"
    return g


def defs(*keys):
    return [CATALOG.get(k) for k in keys]


class LastPick(random.Random):
    """Always picks the last candidate."""

    def choice(self, seq):
        return seq[-1]


class TestResolve(unittest.TestCase):
    def test_auto_invite_filters_by_category(self):
        celeb = guest("celebrity")
        effects = resolve(rng=LastPick(), guest=celeb, house=[celeb],
                          pool=defs("basic", "rich", "troublemaker"))
        self.assertEqual(effects.invites, ["rich"])

    def test_auto_invite_skips_types_already_inside(self):
        celeb, friend = guest("celebrity"), guest("basic")
        effects = resolve(rng=LastPick(), guest=celeb, house=[friend, celeb],
                          pool=defs("rich", "basic"))
        self.assertEqual(effects.invites, ["rich"])

    def test_empty_pool_is_an_empty_effect(self):
        celeb = guest("celebrity")
        effects = resolve(rng=random.Random(1), guest=celeb, house=[celeb], pool=[])
        self.assertTrue(effects.is_empty())

    def test_synergy_needs_a_match(self):
        bartender = guest("bartender")
        effects = resolve(rng=random.Random(1), guest=bartender, house=[bartender], pool=[])
        self.assertEqual(effects.modifications, [])

        rocker = guest("rockstar")
        effects = resolve(rng=random.Random(1), guest=bartender, house=[rocker, bartender], pool=[])
        self.assertEqual(
            effects.modifications,
            [Modification(Property.CASH, 2, target_id=bartender.instance_id)],
        )

    def test_synergy_does_not_scale_with_matches(self):
        bartender = guest("bartender")
        house = [guest("rockstar"), guest("rockstar"), bartender]
        effects = resolve(rng=random.Random(1), guest=bartender, house=house, pool=[])
        self.assertEqual(len(effects.modifications), 1)

    def test_modify_others_targets_everyone_else(self):
        a, b, hype = guest("basic"), guest("rich"), guest("hypeMan")
        effects = resolve(rng=random.Random(1), guest=hype, house=[a, b, hype], pool=[])
        self.assertEqual(
            sorted(m.target_id for m in effects.modifications),
            sorted([a.instance_id, b.instance_id]),
        )
        self.assertTrue(all(m.property is Property.POPULARITY and m.delta == 1
                            for m in effects.modifications))

    def test_markers(self):
        dancer = guest("dancer")
        self.assertTrue(resolve(rng=random.Random(1), guest=dancer, house=[dancer], pool=[]).dancer_recount)
        planner = guest("partyPlanner")
        self.assertTrue(resolve(rng=random.Random(1), guest=planner, house=[planner], pool=[]).reshuffle)

    def test_player_and_passive_abilities_do_nothing_on_join(self):
        for key in ("dog", "comedian", "grillmaster", "bouncer", "driver", "watchdog"):
            g = guest(key)
            effects = resolve(rng=random.Random(1), guest=g, house=[g], pool=defs("basic"))
            self.assertTrue(effects.is_empty(), key)

    def test_invite_candidates_without_filter(self):
        inside = [guest("basic")]
        out = invite_candidates(inside, defs("basic", "rich", "monkey"))
        self.assertEqual([d.key for d in out], ["rich", "monkey"])


if __name__ == "__main__":
    unittest.main()
