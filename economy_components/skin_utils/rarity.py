"""Rarity tiers.

Catalog rarity labels are free text ("Mil-Spec Grade", "Covert", "Consumer
Grade", ...). `classify` maps a label onto one of seven ordered tiers; the same
order is the trade-up progression.
"""
from enum import Enum
from typing import Optional

from economy_components.errors import NoHigherTier, UnsupportedTier


class Tier(str, Enum):
    CONSUMER = "consumer"
    INDUSTRIAL = "industrial"
    MIL_SPEC = "mil-spec"
    RESTRICTED = "restricted"
    CLASSIFIED = "classified"
    COVERT = "covert"
    RARE_SPECIAL = "rare-special"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> Optional[int]:
        """Position in the progression, None for UNKNOWN."""
        if self is Tier.UNKNOWN:
            return None
        return TIER_ORDER.index(self)


# low -> high
TIER_ORDER = (
    Tier.CONSUMER,
    Tier.INDUSTRIAL,
    Tier.MIL_SPEC,
    Tier.RESTRICTED,
    Tier.CLASSIFIED,
    Tier.COVERT,
    Tier.RARE_SPECIAL,
)

# checked in this order, first substring hit wins
_MATCHERS = (
    (Tier.CONSUMER, ("consumer", "common")),
    (Tier.INDUSTRIAL, ("industrial",)),
    (Tier.MIL_SPEC, ("mil-spec", "milspec", "mil")),
    (Tier.RESTRICTED, ("restricted",)),
    (Tier.CLASSIFIED, ("classified",)),
    (Tier.COVERT, ("covert",)),
    (Tier.RARE_SPECIAL, ("rare-special", "rare special", "rare")),
)


def classify(label: Optional[str]) -> Tier:
    if not label:
        return Tier.UNKNOWN
    lowered = label.lower()
    for tier, needles in _MATCHERS:
        if any(needle in lowered for needle in needles):
            return tier
    return Tier.UNKNOWN


def next_tier(tier: Tier) -> Tier:
    """The tier ten items of `tier` trade up into."""
    if tier.rank is None:
        raise UnsupportedTier(f"Rarity '{tier.value}' cannot be traded up", tier=tier.value)
    if tier.rank + 1 >= len(TIER_ORDER):
        raise NoHigherTier("No higher rarity available to trade up to", tier=tier.value)
    return TIER_ORDER[tier.rank + 1]
