# partyhouse/engine.py
from __future__ import annotations

import itertools
import logging
import random
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from partyhouse import house, shop
from partyhouse.abilities import resolve
from partyhouse.catalog import GuestCatalog, default_catalog
from partyhouse.config import (
    CAPACITY_START,
    KICK_ONCE_PER_INSTANCE,
    MAX_ROUNDS,
    STAR_GOAL,
    STARTING_GUESTS,
    TROUBLE_LIMIT,
)
from partyhouse.models import (
    MANUAL_KINDS,
    AbilityKind,
    AbilityResult,
    AdmitResult,
    GameState,
    GuestDefinition,
    GuestInstance,
    PartyResult,
    PhaseEnd,
    PurchaseResult,
    Rejection,
    RoundResult,
)
from partyhouse.streak import MemoryStreak, Streak

logger = logging.getLogger(__name__)

# Gets the option labels, returns a 1-based pick or None for "cancel".
Chooser = Callable[[List[str]], Optional[int]]


class RoundEngine:
    """
    Owns one game's state and every rule that changes it.

    Operations never raise for ordinary rejections; they return a result
    whose `reason` says why nothing happened. Ending a party because the
    house filled up or got into trouble is the caller's job: check
    `check_phase_end()` after each party action.
    """

    def __init__(
        self,
        *,
        catalog: Optional[GuestCatalog] = None,
        rng: Optional[random.Random] = None,
        ids: Optional[Iterator[int]] = None,
        streak: Optional[Streak] = None,
        starting_guests: Optional[Mapping[str, int]] = None,
        max_rounds: int = MAX_ROUNDS,
        kick_once_per_instance: bool = KICK_ONCE_PER_INSTANCE,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.rng = rng if rng is not None else random.Random()
        self._ids = ids if ids is not None else itertools.count(1)
        self.streak = streak if streak is not None else MemoryStreak()
        self.starting_guests = dict(starting_guests if starting_guests is not None else STARTING_GUESTS)
        self.max_rounds = max_rounds
        self.kick_once_per_instance = kick_once_per_instance
        self.state = GameState()
        self.reset()

    # --- lifecycle ---

    def reset(self) -> GameState:
        """Brand new game: round 1, party phase, fresh shop pool."""
        owned: List[str] = []
        for key, copies in self.starting_guests.items():
            self.catalog.get(key)
            owned.extend([key] * copies)

        pool = shop.generate_shop_pool(self.rng, self.catalog, exclude=self.starting_guests)
        self.state = GameState(
            house_capacity=CAPACITY_START,
            max_rounds=self.max_rounds,
            owned=owned,
            shop_pool=pool,
            purchase_counts={k: 0 for k in pool},
        )
        self._start_party_phase()
        logger.info("New game; shop pool %s", ", ".join(pool))
        return self.state

    def _start_party_phase(self) -> None:
        s = self.state
        s.is_party_phase = True
        s.house = []
        s.ability_usage = {}
        s.kicked_types = set()
        self._pick_next_guest(force=True)

    def _pick_next_guest(self, force: bool = False) -> None:
        pool = house.available_pool(self.state)
        if not force and self.state.next_guest in pool:
            return
        self.state.next_guest = self.rng.choice(pool) if pool else None

    def _finish(self, won: bool) -> None:
        s = self.state
        s.game_over = True
        s.won = won
        s.is_party_phase = False
        s.house = []
        s.next_guest = None
        streak = self.streak.get() + 1 if won else 0
        self.streak.set(streak)
        logger.info("Game %s in round %s; streak %s", "won" if won else "lost", s.round, streak)

    def _guard_party(self) -> Optional[Rejection]:
        if self.state.game_over:
            return Rejection.GAME_OVER
        if not self.state.is_party_phase:
            return Rejection.WRONG_PHASE
        return None

    def _guard_shop(self) -> Optional[Rejection]:
        if self.state.game_over:
            return Rejection.GAME_OVER
        if self.state.is_party_phase:
            return Rejection.WRONG_PHASE
        return None

    # --- admission ---

    def _new_id(self) -> str:
        return f"guest_{next(self._ids)}"

    def _admit(self, key: str, result: AdmitResult) -> bool:
        """
        Put one guest in and cascade its on-join effects.
        Returns True when a dancer recount is owed.
        """
        s = self.state
        if house.is_full(s):
            logger.debug("No room for %s; dropped", key)
            return False

        guest = self.catalog.instantiate(key)
        guest.instance_id = self._new_id()
        s.house.append(guest)
        result.admitted.append(guest)
        logger.debug("Admitted %s as %s", key, guest.instance_id)

        pool = [self.catalog.get(k) for k in house.available_pool(s)]
        effects = resolve(rng=self.rng, guest=guest, house=s.house, pool=pool)
        recount = effects.dancer_recount

        for invite in effects.invites:
            recount = self._admit(invite, result) or recount

        for mod in effects.modifications:
            house.apply_modification(s, mod)

        if effects.reshuffle:
            house.shuffle_house(self.rng, s)
            result.reshuffled = True

        return recount

    def _admit_action(self, key: str, redraw: bool = False) -> AdmitResult:
        result = AdmitResult()
        if self._admit(key, result):
            house.recount_dancers(self.state)
        self._pick_next_guest(force=redraw)
        return result

    def admit_next_guest(self) -> AdmitResult:
        """Open the door to the pre-selected next guest."""
        reason = self._guard_party()
        if reason is None and house.is_full(self.state):
            reason = Rejection.HOUSE_FULL
        if reason is None and self.state.next_guest is None:
            reason = Rejection.POOL_EMPTY
        if reason is not None:
            return AdmitResult(reason=reason)
        return self._admit_action(self.state.next_guest, redraw=True)

    def admit_selected_guest(self, key: str) -> AdmitResult:
        reason = self._guard_party()
        if reason is None and house.is_full(self.state):
            reason = Rejection.HOUSE_FULL
        if reason is None and key not in house.available_pool(self.state):
            reason = Rejection.INVALID_SELECTION
        if reason is not None:
            return AdmitResult(reason=reason)
        return self._admit_action(key)

    # --- player abilities ---

    def _usage_key(self, kind: AbilityKind, guest: GuestInstance) -> Optional[str]:
        if kind is AbilityKind.MANUAL_RESHUFFLE:
            return guest.key
        if kind is AbilityKind.KICK:
            return guest.instance_id if self.kick_once_per_instance else None
        return guest.instance_id

    def _mark_used(self, kind: AbilityKind, guest: GuestInstance) -> None:
        key = self._usage_key(kind, guest)
        if key is not None:
            self.state.ability_usage.setdefault(key, set()).add(kind)

    def _owner(self, kind: AbilityKind, instance_id: str) -> Optional[GuestInstance]:
        guest = house.find_guest(self.state, instance_id)
        if guest is None or not guest.has_ability(kind):
            return None
        return guest

    def ability_ready(self, kind: AbilityKind, instance_id: str) -> bool:
        """Whether the guest holds `kind` and has not spent it this party."""
        kind = AbilityKind(kind)
        guest = self._owner(kind, instance_id)
        if guest is None or kind not in MANUAL_KINDS:
            return False
        key = self._usage_key(kind, guest)
        return key is None or kind not in self.state.ability_usage.get(key, set())

    def _kick_targets(self, guest: GuestInstance) -> List[GuestInstance]:
        return [g for g in self.state.house if g.instance_id != guest.instance_id]

    def selection_labels(self, kind: AbilityKind, instance_id: str) -> List[str]:
        """The numbered options a Kick or ManualInvite would ask the player about."""
        kind = AbilityKind(kind)
        guest = self._owner(kind, instance_id)
        if guest is None:
            return []
        if kind is AbilityKind.KICK:
            return [g.name for g in self._kick_targets(guest)]
        if kind is AbilityKind.MANUAL_INVITE:
            return [self.catalog.get(k).name for k in house.manual_invite_options(self.state)]
        return []

    @staticmethod
    def _ask(choose: Optional[Chooser], labels: Sequence[str]) -> Optional[int]:
        if choose is None:
            return None
        pick = choose(list(labels))
        if isinstance(pick, bool) or not isinstance(pick, int):
            return None
        if not 1 <= pick <= len(labels):
            return None
        return pick - 1

    def use_ability(
        self,
        kind: AbilityKind,
        instance_id: str,
        choose: Optional[Chooser] = None,
    ) -> AbilityResult:
        """
        Trigger a player ability held by the guest `instance_id`.
        Kick and ManualInvite call `choose` with the option labels; a
        cancelled or out-of-range answer changes nothing.
        """
        kind = AbilityKind(kind)
        reason = self._guard_party()
        if reason is not None:
            return AbilityResult(kind, reason=reason)
        if kind not in MANUAL_KINDS:
            return AbilityResult(kind, reason=Rejection.INVALID_SELECTION)

        guest = self._owner(kind, instance_id)
        if guest is None:
            return AbilityResult(kind, reason=Rejection.UNKNOWN_INSTANCE)
        if not self.ability_ready(kind, instance_id):
            return AbilityResult(kind, reason=Rejection.ABILITY_ALREADY_USED)

        if kind is AbilityKind.MANUAL_RESHUFFLE:
            return self._manual_reshuffle(guest)
        if kind is AbilityKind.KICK:
            return self._kick(guest, choose)
        if kind is AbilityKind.MANUAL_INVITE:
            return self._manual_invite(guest, choose)
        return self._peek(guest)

    def _manual_reshuffle(self, guest: GuestInstance) -> AbilityResult:
        s = self.state
        removed = list(s.house)
        s.house = []
        self._mark_used(AbilityKind.MANUAL_RESHUFFLE, guest)
        self._pick_next_guest()
        logger.info("%s cleared the house (%s guests)", guest.name, len(removed))
        return AbilityResult(AbilityKind.MANUAL_RESHUFFLE, removed=removed)

    def _kick(self, guest: GuestInstance, choose: Optional[Chooser]) -> AbilityResult:
        targets = self._kick_targets(guest)
        if not targets:
            return AbilityResult(AbilityKind.KICK, reason=Rejection.NO_TARGETS)
        index = self._ask(choose, [g.name for g in targets])
        if index is None:
            return AbilityResult(AbilityKind.KICK, reason=Rejection.INVALID_SELECTION)

        s = self.state
        victim = targets[index]
        s.house = [g for g in s.house if g.instance_id != victim.instance_id]
        s.kicked_types.add(victim.key)
        house.recount_dancers(s)
        self._mark_used(AbilityKind.KICK, guest)
        self._pick_next_guest()
        logger.info("%s kicked %s", guest.instance_id, victim.instance_id)
        return AbilityResult(AbilityKind.KICK, removed=[victim])

    def _manual_invite(self, guest: GuestInstance, choose: Optional[Chooser]) -> AbilityResult:
        if house.is_full(self.state):
            return AbilityResult(AbilityKind.MANUAL_INVITE, reason=Rejection.HOUSE_FULL)
        options = house.manual_invite_options(self.state)
        if not options:
            return AbilityResult(AbilityKind.MANUAL_INVITE, reason=Rejection.POOL_EMPTY)
        index = self._ask(choose, [self.catalog.get(k).name for k in options])
        if index is None:
            return AbilityResult(AbilityKind.MANUAL_INVITE, reason=Rejection.INVALID_SELECTION)

        self._mark_used(AbilityKind.MANUAL_INVITE, guest)
        admission = self._admit_action(options[index])
        return AbilityResult(AbilityKind.MANUAL_INVITE, admission=admission)

    def _peek(self, guest: GuestInstance) -> AbilityResult:
        if self.state.next_guest is None:
            return AbilityResult(AbilityKind.PEEK, reason=Rejection.POOL_EMPTY)
        self._mark_used(AbilityKind.PEEK, guest)
        return AbilityResult(AbilityKind.PEEK, revealed=self.catalog.get(self.state.next_guest))

    # --- phase ends ---

    def check_phase_end(self) -> Optional[PhaseEnd]:
        if self._guard_party() is not None:
            return None
        return house.phase_end_trigger(self.state)

    def end_party_phase_by_trouble(self) -> PartyResult:
        """Too much trouble: everyone leaves and nothing is paid out."""
        reason = self._guard_party()
        if reason is not None:
            return PartyResult(reason=reason)
        s = self.state
        result = PartyResult(round=s.round, star_count=house.star_count(s), trouble_ended=True)
        s.house = []
        s.is_party_phase = False
        s.next_guest = None
        s.history.append(result)
        logger.info("Round %s party broken up by trouble", s.round)
        return result

    def end_party_phase_voluntarily(self) -> PartyResult:
        """
        Close the party and collect. Order matters:
          1. trouble at the limit still forfeits everything
          2. enough stars wins the game before anything is paid
          3. dancers and comedians rescale, then popularity and cash are summed
        """
        reason = self._guard_party()
        if reason is not None:
            return PartyResult(reason=reason)
        s = self.state
        if house.trouble_count(s) >= TROUBLE_LIMIT:
            return self.end_party_phase_by_trouble()

        house.recount_dancers(s)
        stars = house.star_count(s)
        if stars >= STAR_GOAL:
            result = PartyResult(round=s.round, star_count=stars, won=True)
            s.history.append(result)
            self._finish(won=True)
            return result

        house.apply_comedians(s)
        popularity, cash = house.tally(s)
        # balances never go below zero even if a party nets negative
        s.popularity = max(0, s.popularity + popularity)
        s.cash = max(0, s.cash + cash)
        s.star_count_last_phase = stars
        s.house = []
        s.is_party_phase = False
        s.next_guest = None

        result = PartyResult(
            round=s.round,
            popularity_earned=popularity,
            cash_earned=cash,
            star_count=stars,
        )
        s.history.append(result)
        logger.info("Round %s party paid %s popularity, %s cash", s.round, popularity, cash)
        return result

    def advance_to_next_round(self) -> RoundResult:
        reason = self._guard_shop()
        if reason is not None:
            return RoundResult(self.state.round, reason=reason)
        s = self.state
        s.round += 1
        if s.round > s.max_rounds:
            self._finish(won=False)
            return RoundResult(s.round, lost=True)
        self._start_party_phase()
        return RoundResult(s.round)

    def forfeit(self) -> None:
        """The player walks away; counts as a loss."""
        if not self.state.game_over:
            self._finish(won=False)

    # --- shop ---

    def buy_guest(self, key: str) -> PurchaseResult:
        reason = self._guard_shop()
        if reason is not None:
            return PurchaseResult(reason=reason, key=key)
        return shop.buy_guest(self.state, self.catalog, key)

    def upgrade_capacity(self) -> PurchaseResult:
        reason = self._guard_shop()
        if reason is not None:
            return PurchaseResult(reason=reason)
        return shop.upgrade_capacity(self.state)

    # --- queries ---

    def trouble_count(self, raw: bool = False) -> int:
        if raw:
            return house.raw_trouble(self.state)
        return house.trouble_count(self.state)

    def star_count(self) -> int:
        return house.star_count(self.state)

    def available_pool(self) -> List[str]:
        return house.available_pool(self.state)

    def available_counts(self) -> Dict[str, int]:
        return house.available_counts(self.state)

    def capacity_upgrade_cost(self) -> int:
        return shop.upgrade_cost(self.state.capacity_upgrades)

    def purchase_count(self, key: str) -> int:
        return shop.purchase_count(self.state, key)

    def can_purchase(self, key: str) -> bool:
        return shop.purchase_block(self.state, self.catalog, key) is None

    def shop_listing(self) -> List[Dict[str, object]]:
        return shop.shop_listing(self.state, self.catalog)

    def definition(self, key: str) -> GuestDefinition:
        return self.catalog.get(key)
