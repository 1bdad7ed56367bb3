# partyhouse/catalog.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from partyhouse.config import GUESTS_PATH
from partyhouse.models import (
    Ability,
    AbilityKind,
    AutoInvite,
    ComedianSynergy,
    DancerSynergy,
    GuestDefinition,
    GuestInstance,
    Kick,
    ManualInvite,
    ManualReshuffle,
    Modify,
    Peek,
    Property,
    Reshuffle,
    Synergy,
    Target,
    WhiteFlag,
)

logger = logging.getLogger(__name__)


class UnknownGuestType(ValueError):
    """Raised when a type key has no catalog entry."""


_SIMPLE_ABILITIES = {
    AbilityKind.DANCER_SYNERGY: DancerSynergy,
    AbilityKind.COMEDIAN_SYNERGY: ComedianSynergy,
    AbilityKind.RESHUFFLE: Reshuffle,
    AbilityKind.MANUAL_RESHUFFLE: ManualReshuffle,
    AbilityKind.KICK: Kick,
    AbilityKind.MANUAL_INVITE: ManualInvite,
    AbilityKind.PEEK: Peek,
    AbilityKind.WHITE_FLAG: WhiteFlag,
}


def parse_ability(raw: Dict[str, Any]) -> Ability:
    try:
        kind = AbilityKind(raw["type"])
    except (KeyError, ValueError) as e:
        raise ValueError(f"Bad ability declaration: {raw!r}") from e

    if kind is AbilityKind.AUTO_INVITE:
        return AutoInvite(filter_type=raw.get("filter_type"))
    if kind is AbilityKind.SYNERGY:
        bonus = raw.get("bonus", {})
        if not (raw.get("with_type") or raw.get("with_name")):
            raise ValueError(f"Synergy needs with_type or with_name: {raw!r}")
        return Synergy(
            bonus_property=Property(bonus["property"]),
            bonus_value=int(bonus["value"]),
            with_type=raw.get("with_type"),
            with_name=raw.get("with_name"),
        )
    if kind is AbilityKind.MODIFY:
        return Modify(
            target=Target(raw.get("target", "self")),
            property=Property(raw["property"]),
            value=int(raw["value"]),
        )
    return _SIMPLE_ABILITIES[kind]()


def parse_definition(key: str, raw: Dict[str, Any]) -> GuestDefinition:
    star = int(raw.get("star", 0))
    if star not in (0, 1):
        raise ValueError(f"Guest {key!r}: star must be 0 or 1, got {star}")
    return GuestDefinition(
        key=key,
        name=str(raw.get("name", key)),
        popularity=int(raw.get("popularity", 0)),
        cash=int(raw.get("cash", 0)),
        trouble=int(raw.get("trouble", 0)),
        star=star,
        category=str(raw.get("category", "basic")),
        cost=int(raw.get("cost", 0)),
        abilities=tuple(parse_ability(a) for a in raw.get("abilities", [])),
        description=str(raw.get("description", "")),
    )


class GuestCatalog:
    """Static registry of guest types, keyed by type key."""

    def __init__(self, definitions: Iterable[GuestDefinition]):
        self._defs: Dict[str, GuestDefinition] = {}
        for d in definitions:
            if d.key in self._defs:
                raise ValueError(f"Duplicate guest key: {d.key}")
            self._defs[d.key] = d

    @classmethod
    def from_dict(cls, raw: Dict[str, Dict[str, Any]]) -> "GuestCatalog":
        return cls(parse_definition(key, entry) for key, entry in raw.items())

    def __contains__(self, key: object) -> bool:
        return key in self._defs

    def __len__(self) -> int:
        return len(self._defs)

    def keys(self) -> List[str]:
        return list(self._defs)

    def definitions(self) -> List[GuestDefinition]:
        return list(self._defs.values())

    def find(self, key: str) -> Optional[GuestDefinition]:
        return self._defs.get(key)

    def get(self, key: str) -> GuestDefinition:
        try:
            return self._defs[key]
        except KeyError as e:
            raise UnknownGuestType(f"Unknown guest type: {key}") from e

    def instantiate(self, key: str) -> GuestInstance:
        """Fresh copy of the base attributes. Identity is assigned on admission."""
        d = self.get(key)
        return GuestInstance(
            definition=d,
            popularity=d.popularity,
            cash=d.cash,
            trouble=d.trouble,
            star=d.star,
        )


def load_catalog(path: str = GUESTS_PATH) -> GuestCatalog:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    catalog = GuestCatalog.from_dict(raw)
    logger.debug("Loaded %s guest types from %s", len(catalog), path)
    return catalog


_DEFAULT: Optional[GuestCatalog] = None


def default_catalog() -> GuestCatalog:
    """The bundled roster, loaded on first use."""
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = load_catalog()
    return _DEFAULT
