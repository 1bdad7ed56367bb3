# partyhouse/controller.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from partyhouse.config import STAR_GOAL
from partyhouse.engine import Chooser, RoundEngine
from partyhouse.models import (
    AbilityKind,
    AbilityResult,
    AdmitResult,
    PartyResult,
    PhaseEnd,
    PurchaseResult,
    Rejection,
    RoundResult,
)

logger = logging.getLogger(__name__)

REJECTION_MESSAGES = {
    Rejection.HOUSE_FULL: "House is at full capacity!",
    Rejection.INSUFFICIENT_FUNDS: "Not enough funds!",
    Rejection.PURCHASE_LIMIT_REACHED: "You already own the maximum copies of that guest.",
    Rejection.NOT_IN_SHOP: "That guest is not for sale.",
    Rejection.CAPACITY_MAXED: "House capacity is at maximum!",
    Rejection.INVALID_SELECTION: "Invalid selection!",
    Rejection.ABILITY_ALREADY_USED: "This ability has already been used this party!",
    Rejection.POOL_EMPTY: "No guests available in pool!",
    Rejection.NO_TARGETS: "No other guests to kick!",
    Rejection.UNKNOWN_INSTANCE: "That guest is not at the party.",
    Rejection.WRONG_PHASE: "You can't do that right now.",
    Rejection.GAME_OVER: "The game is over.",
}


class PartyController:
    """
    Sequences one player action at a time against a RoundEngine.

    `notify(text)` shows a message; `choose(prompt, labels)` asks the
    player to pick one of `labels` and returns a 1-based index or None.
    After every party action the controller settles the phase: trouble
    first, then a full house.
    """

    def __init__(
        self,
        engine: RoundEngine,
        notify: Callable[[str], None],
        choose: Optional[Callable[[str, List[str]], Optional[int]]] = None,
    ):
        self.engine = engine
        self.notify = notify
        self.choose = choose

    @property
    def state(self):
        return self.engine.state

    def _reject(self, reason: Rejection) -> None:
        self.notify(REJECTION_MESSAGES.get(reason, reason.value))

    def _chooser(self, prompt: str) -> Optional[Chooser]:
        if self.choose is None:
            return None
        return lambda labels: self.choose(prompt, labels)

    # --- game ---

    def start_game(self) -> None:
        self.engine.reset()
        self.notify(f"Win streak: {self.engine.streak.get()}")

    def quit_game(self) -> None:
        self.engine.forfeit()
        self.notify("Game Over")

    # --- party phase ---

    def open_door(self) -> Optional[AdmitResult]:
        if self.engine.check_phase_end() is not None:
            # clicking with a full house just closes the party
            self._settle()
            return None
        result = self.engine.admit_next_guest()
        if not result.ok:
            self._reject(result.reason)
            return result
        self._settle()
        return result

    def use_ability(self, kind: AbilityKind, instance_id: str) -> AbilityResult:
        kind = AbilityKind(kind)
        prompt = {
            AbilityKind.KICK: "Select a guest to kick:",
            AbilityKind.MANUAL_INVITE: "Select a guest to invite:",
        }.get(kind, "")
        result = self.engine.use_ability(kind, instance_id, choose=self._chooser(prompt))
        if not result.ok:
            self._reject(result.reason)
            return result

        if kind is AbilityKind.MANUAL_RESHUFFLE:
            self.notify("Party reshuffled! All guests have been removed from the house. "
                        "You can invite them again.")
        elif kind is AbilityKind.KICK:
            self.notify(f"{result.removed[0].name} has been kicked from the party!")
        elif kind is AbilityKind.PEEK:
            d = result.revealed
            self.notify(f"Next guest: {d.name} ({d.popularity} Pop, {d.cash} Cash, "
                        f"{d.trouble} Trouble, {d.star} Star)")
        self._settle()
        return result

    def end_round(self) -> Optional[PartyResult]:
        if not self.state.is_party_phase or self.state.game_over:
            self._reject(Rejection.GAME_OVER if self.state.game_over else Rejection.WRONG_PHASE)
            return None
        return self._close_party()

    def _settle(self) -> Optional[PartyResult]:
        trigger = self.engine.check_phase_end()
        if trigger is not None:
            logger.debug("Party phase ends: %s", trigger.value)
        if trigger is PhaseEnd.TROUBLE:
            result = self.engine.end_party_phase_by_trouble()
            self.notify("Party ended! Three troubles detected!")
            return result
        if trigger is PhaseEnd.FULL:
            return self._close_party()
        return None

    def _close_party(self) -> PartyResult:
        result = self.engine.end_party_phase_voluntarily()
        if result.trouble_ended:
            self.notify("Party ended! Three troubles detected!")
        elif result.won:
            self.notify("You WIN!")
        else:
            self.notify(
                "Party Results:\n"
                f"Popularity Earned: {result.popularity_earned}\n"
                f"Cash Earned: {result.cash_earned}\n"
                f"Stars: {result.star_count} / {STAR_GOAL}"
            )
        return result

    # --- shop phase ---

    def buy_guest(self, key: str) -> PurchaseResult:
        result = self.engine.buy_guest(key)
        if not result.ok:
            self._reject(result.reason)
        return result

    def upgrade_capacity(self) -> PurchaseResult:
        result = self.engine.upgrade_capacity()
        if not result.ok:
            self._reject(result.reason)
        return result

    def next_round(self) -> RoundResult:
        result = self.engine.advance_to_next_round()
        if result.lost:
            self.notify(f"Game Over! You didn't reach {STAR_GOAL} star guests "
                        f"within {self.state.max_rounds} rounds.")
        elif not result.ok:
            self._reject(result.reason)
        return result
