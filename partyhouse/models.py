# partyhouse/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Set, Tuple, Union

from partyhouse.config import CAPACITY_START, MAX_ROUNDS


class Property(str, Enum):
    POPULARITY = "popularity"
    CASH = "cash"
    TROUBLE = "trouble"
    STAR = "star"


class Target(str, Enum):
    SELF = "self"
    OTHERS = "others"


class AbilityKind(str, Enum):
    AUTO_INVITE = "invite"
    SYNERGY = "synergy"
    DANCER_SYNERGY = "dancerSynergy"
    COMEDIAN_SYNERGY = "comedianSynergy"
    RESHUFFLE = "reshuffle"
    MANUAL_RESHUFFLE = "manualReshuffle"
    KICK = "kick"
    MANUAL_INVITE = "manualInvite"
    PEEK = "peek"
    WHITE_FLAG = "whiteFlag"
    MODIFY = "modify"


# Abilities the player triggers from a guest in the house.
MANUAL_KINDS = (
    AbilityKind.MANUAL_RESHUFFLE,
    AbilityKind.KICK,
    AbilityKind.MANUAL_INVITE,
    AbilityKind.PEEK,
)


@dataclass(frozen=True)
class Modification:
    """
    A change to one attribute of a house guest.
    Matched by instance id when set, otherwise by type key.
    """
    property: Property
    delta: int
    target_id: Optional[str] = None
    target_type: Optional[str] = None


# --- Ability declarations (closed set; the resolver matches on class) ---

@dataclass(frozen=True)
class AutoInvite:
    kind: ClassVar[AbilityKind] = AbilityKind.AUTO_INVITE
    filter_type: Optional[str] = None


@dataclass(frozen=True)
class Synergy:
    kind: ClassVar[AbilityKind] = AbilityKind.SYNERGY
    bonus_property: Property
    bonus_value: int
    with_type: Optional[str] = None
    with_name: Optional[str] = None


@dataclass(frozen=True)
class DancerSynergy:
    kind: ClassVar[AbilityKind] = AbilityKind.DANCER_SYNERGY


@dataclass(frozen=True)
class ComedianSynergy:
    kind: ClassVar[AbilityKind] = AbilityKind.COMEDIAN_SYNERGY


@dataclass(frozen=True)
class Reshuffle:
    kind: ClassVar[AbilityKind] = AbilityKind.RESHUFFLE


@dataclass(frozen=True)
class ManualReshuffle:
    kind: ClassVar[AbilityKind] = AbilityKind.MANUAL_RESHUFFLE


@dataclass(frozen=True)
class Kick:
    kind: ClassVar[AbilityKind] = AbilityKind.KICK


@dataclass(frozen=True)
class ManualInvite:
    kind: ClassVar[AbilityKind] = AbilityKind.MANUAL_INVITE


@dataclass(frozen=True)
class Peek:
    kind: ClassVar[AbilityKind] = AbilityKind.PEEK


@dataclass(frozen=True)
class WhiteFlag:
    kind: ClassVar[AbilityKind] = AbilityKind.WHITE_FLAG


@dataclass(frozen=True)
class Modify:
    kind: ClassVar[AbilityKind] = AbilityKind.MODIFY
    target: Target
    property: Property
    value: int


Ability = Union[
    AutoInvite,
    Synergy,
    DancerSynergy,
    ComedianSynergy,
    Reshuffle,
    ManualReshuffle,
    Kick,
    ManualInvite,
    Peek,
    WhiteFlag,
    Modify,
]


@dataclass(frozen=True)
class GuestDefinition:
    """A catalog entry. Never mutated after load."""
    key: str
    name: str
    popularity: int
    cash: int
    trouble: int
    star: int
    category: str
    cost: int
    abilities: Tuple[Ability, ...] = ()
    description: str = ""

    def has_ability(self, kind: AbilityKind) -> bool:
        return any(a.kind == kind for a in self.abilities)


@dataclass
class GuestInstance:
    """
    A guest in (or on the way into) the house.
    Attribute values start as copies of the definition and may drift.
    instance_id stays None until the guest is actually admitted.
    """
    definition: GuestDefinition
    popularity: int
    cash: int
    trouble: int
    star: int
    instance_id: Optional[str] = None

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def category(self) -> str:
        return self.definition.category

    @property
    def abilities(self) -> Tuple[Ability, ...]:
        return self.definition.abilities

    def has_ability(self, kind: AbilityKind) -> bool:
        return self.definition.has_ability(kind)

    def get(self, prop: Property) -> int:
        if prop is Property.POPULARITY:
            return self.popularity
        if prop is Property.CASH:
            return self.cash
        if prop is Property.TROUBLE:
            return self.trouble
        if prop is Property.STAR:
            return self.star
        raise ValueError(f"Unknown property: {prop}")

    def set(self, prop: Property, value: int) -> None:
        if prop is Property.POPULARITY:
            self.popularity = value
        elif prop is Property.CASH:
            self.cash = value
        elif prop is Property.TROUBLE:
            self.trouble = value
        elif prop is Property.STAR:
            self.star = value
        else:
            raise ValueError(f"Unknown property: {prop}")

    def adjust(self, prop: Property, delta: int) -> None:
        self.set(prop, self.get(prop) + delta)


@dataclass
class EffectSet:
    """What a guest's on-join abilities ask the engine to do."""
    invites: List[str] = field(default_factory=list)
    reshuffle: bool = False
    modifications: List[Modification] = field(default_factory=list)
    dancer_recount: bool = False

    def is_empty(self) -> bool:
        return not (self.invites or self.reshuffle or self.modifications or self.dancer_recount)


class Rejection(str, Enum):
    HOUSE_FULL = "house_full"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    PURCHASE_LIMIT_REACHED = "purchase_limit_reached"
    NOT_IN_SHOP = "not_in_shop"
    CAPACITY_MAXED = "capacity_maxed"
    INVALID_SELECTION = "invalid_selection"
    ABILITY_ALREADY_USED = "ability_already_used"
    POOL_EMPTY = "pool_empty"
    NO_TARGETS = "no_targets"
    UNKNOWN_INSTANCE = "unknown_instance"
    WRONG_PHASE = "wrong_phase"
    GAME_OVER = "game_over"


class PhaseEnd(str, Enum):
    TROUBLE = "trouble"
    FULL = "full"


@dataclass
class AdmitResult:
    """Outcome of one admission, including anything it pulled in."""
    reason: Optional[Rejection] = None
    admitted: List[GuestInstance] = field(default_factory=list)
    reshuffled: bool = False

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class PartyResult:
    """What a finished party phase paid out."""
    round: int = 0
    popularity_earned: int = 0
    cash_earned: int = 0
    star_count: int = 0
    trouble_ended: bool = False
    won: bool = False
    reason: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class PurchaseResult:
    """Outcome of a shop purchase or capacity upgrade."""
    reason: Optional[Rejection] = None
    key: Optional[str] = None
    spent: int = 0

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class AbilityResult:
    kind: AbilityKind
    reason: Optional[Rejection] = None
    removed: List[GuestInstance] = field(default_factory=list)
    admission: Optional[AdmitResult] = None
    revealed: Optional[GuestDefinition] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class RoundResult:
    round: int
    reason: Optional[Rejection] = None
    lost: bool = False

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class GameState:
    """
    The current game state. Keep this as a 'data bag'; logic lives elsewhere.
    """
    popularity: int = 0
    cash: int = 0

    house_capacity: int = CAPACITY_START
    capacity_upgrades: int = 0
    house: List[GuestInstance] = field(default_factory=list)

    round: int = 1
    max_rounds: int = MAX_ROUNDS
    is_party_phase: bool = True

    # usage key (type key or instance id) -> ability kinds used this party
    ability_usage: Dict[str, Set[AbilityKind]] = field(default_factory=dict)
    kicked_types: Set[str] = field(default_factory=set)

    # Multiset of type keys backing the invite pool
    owned: List[str] = field(default_factory=list)

    shop_pool: List[str] = field(default_factory=list)
    purchase_counts: Dict[str, int] = field(default_factory=dict)

    star_count_last_phase: int = 0
    next_guest: Optional[str] = None

    game_over: bool = False
    won: bool = False

    # Finished party phases, oldest first
    history: List[PartyResult] = field(default_factory=list)
