import random
import unittest

from partyhouse.catalog import GuestCatalog, default_catalog
from partyhouse.engine import RoundEngine
from partyhouse.models import Rejection
from partyhouse.shop import generate_shop_pool, upgrade_cost
from partyhouse.streak import MemoryStreak

STARTERS = ("basic", "rich", "troublemaker")


def shop_engine(seed=3):
    """Engine parked in the shop phase with an empty wallet."""
    engine = RoundEngine(rng=random.Random(seed), streak=MemoryStreak())
    engine.end_party_phase_voluntarily()
    return engine


def non_star(engine):
    return next(k for k in engine.state.shop_pool if engine.definition(k).star == 0)


def star(engine):
    return next(k for k in engine.state.shop_pool if engine.definition(k).star > 0)


class TestShopPool(unittest.TestCase):
    def test_pool_shape_across_seeds(self):
        catalog = default_catalog()
        for seed in range(30):
            pool = generate_shop_pool(random.Random(seed), catalog, exclude=STARTERS)
            self.assertEqual(len(pool), 10)
            self.assertEqual(len(set(pool)), 10)
            self.assertGreaterEqual(sum(1 for k in pool if catalog.get(k).star), 2)
            self.assertFalse(set(pool) & set(STARTERS))

    def test_pool_survives_rounds(self):
        engine = shop_engine()
        pool = list(engine.state.shop_pool)
        engine.advance_to_next_round()
        engine.end_party_phase_voluntarily()
        engine.advance_to_next_round()
        self.assertEqual(engine.state.shop_pool, pool)

    def test_needs_two_star_types(self):
        raw = {f"g{i}": {"name": f"G{i}"} for i in range(12)}
        raw["s0"] = {"name": "S0", "star": 1}
        with self.assertRaises(ValueError):
            generate_shop_pool(random.Random(1), GuestCatalog.from_dict(raw))


class TestUpgrades(unittest.TestCase):
    def test_cost_ramp(self):
        costs = [upgrade_cost(n) for n in range(14)]
        self.assertEqual(costs, [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 12, 12, 12])

    def test_upgrade_spends_cash(self):
        engine = shop_engine()
        engine.state.cash = 10
        paid = [engine.upgrade_capacity().spent for _ in range(3)]
        self.assertEqual(paid, [2, 3, 4])
        self.assertEqual(engine.state.house_capacity, 8)
        self.assertEqual(engine.state.cash, 1)
        self.assertEqual(engine.capacity_upgrade_cost(), 5)

    def test_upgrade_without_cash(self):
        engine = shop_engine()
        engine.state.cash = 1
        result = engine.upgrade_capacity()
        self.assertEqual(result.reason, Rejection.INSUFFICIENT_FUNDS)
        self.assertEqual((engine.state.house_capacity, engine.state.cash), (5, 1))

    def test_capacity_cap(self):
        engine = shop_engine()
        engine.state.cash = 10_000
        while engine.upgrade_capacity().ok:
            pass
        self.assertEqual(engine.state.house_capacity, 35)
        self.assertEqual(engine.upgrade_capacity().reason, Rejection.CAPACITY_MAXED)
        self.assertEqual(engine.capacity_upgrade_cost(), 12)

    def test_no_upgrades_mid_party(self):
        engine = RoundEngine(rng=random.Random(1), streak=MemoryStreak())
        engine.state.cash = 50
        self.assertEqual(engine.upgrade_capacity().reason, Rejection.WRONG_PHASE)


class TestBuying(unittest.TestCase):
    def test_buy_adds_to_pool(self):
        engine = shop_engine()
        key = non_star(engine)
        cost = engine.definition(key).cost
        engine.state.popularity = cost + 1
        result = engine.buy_guest(key)
        self.assertTrue(result.ok)
        self.assertEqual(engine.state.popularity, 1)
        self.assertEqual(engine.purchase_count(key), 1)
        engine.advance_to_next_round()
        self.assertIn(key, engine.available_pool())

    def test_not_enough_popularity(self):
        engine = shop_engine()
        key = non_star(engine)
        engine.state.popularity = engine.definition(key).cost - 1
        owned = list(engine.state.owned)
        result = engine.buy_guest(key)
        self.assertEqual(result.reason, Rejection.INSUFFICIENT_FUNDS)
        self.assertEqual(engine.state.owned, owned)
        self.assertEqual(engine.purchase_count(key), 0)
        self.assertFalse(engine.can_purchase(key))

    def test_fifth_copy_refused(self):
        engine = shop_engine()
        key = non_star(engine)
        engine.state.popularity = 10_000
        for _ in range(4):
            self.assertTrue(engine.buy_guest(key).ok)
        result = engine.buy_guest(key)
        self.assertEqual(result.reason, Rejection.PURCHASE_LIMIT_REACHED)
        self.assertEqual(engine.purchase_count(key), 4)

    def test_star_types_uncapped(self):
        engine = shop_engine()
        key = star(engine)
        engine.state.popularity = 10_000
        for _ in range(6):
            self.assertTrue(engine.buy_guest(key).ok)
        self.assertEqual(engine.purchase_count(key), 6)

    def test_only_shop_types(self):
        engine = shop_engine()
        engine.state.popularity = 10_000
        self.assertEqual(engine.buy_guest("basic").reason, Rejection.NOT_IN_SHOP)
        self.assertEqual(engine.buy_guest("unicorn").reason, Rejection.NOT_IN_SHOP)

    def test_listing(self):
        engine = shop_engine()
        engine.state.popularity = 10_000
        listing = engine.shop_listing()
        self.assertEqual([item["key"] for item in listing], engine.state.shop_pool)
        self.assertTrue(all(item["purchasable"] for item in listing))
        for item in listing:
            self.assertEqual(item["limit"], None if item["definition"].star else 4)


if __name__ == "__main__":
    unittest.main()
