# Drop selection for case opening and trade-ups.
import random
from typing import Callable, Optional, Sequence

from economy_components.errors import EmptyCandidateSet
from economy_components.skin_utils.rarity import Tier, classify
from economy_components.skin_utils.skin import CatalogItem

# relative drop weight per tier; only the ratios matter
COMMON_WEIGHT = 70.0
UNCOMMON_WEIGHT = 20.0
RARE_WEIGHT = 8.0
HIGH_TIER_WEIGHT = 2.0
UNCLASSIFIED_WEIGHT = 10.0

TIER_WEIGHTS = {
    Tier.CONSUMER: COMMON_WEIGHT,
    Tier.INDUSTRIAL: COMMON_WEIGHT,
    Tier.MIL_SPEC: UNCOMMON_WEIGHT,
    Tier.RESTRICTED: UNCOMMON_WEIGHT,
    Tier.CLASSIFIED: RARE_WEIGHT,
    Tier.COVERT: HIGH_TIER_WEIGHT,
    Tier.RARE_SPECIAL: HIGH_TIER_WEIGHT,
    Tier.UNKNOWN: UNCLASSIFIED_WEIGHT,
}


def rarity_weight(item: CatalogItem) -> float:
    return TIER_WEIGHTS[classify(item.rarity)]


def select(
    items: Sequence[CatalogItem],
    weight_fn: Callable[[CatalogItem], float] = rarity_weight,
    rng: Optional[random.Random] = None,
) -> CatalogItem:
    """Pick one item with probability proportional to `weight_fn(item)`.

    Draws a uniform value in [0, total) and walks the cumulative weights until
    the running sum passes it. `rng` only needs a `random()` method; pass a
    seeded `random.Random` for reproducible draws.
    """
    if not items:
        raise EmptyCandidateSet("No items to select from")
    rng = rng or random.Random()

    weights = [max(float(weight_fn(item)), 0.0) for item in items]
    total = sum(weights)
    if total <= 0:
        return choose_uniform(items, rng)

    rand_value = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if cumulative > rand_value:
            return item
    # Fallback in case of rounding errors
    return items[-1]


def choose_uniform(items: Sequence[CatalogItem], rng: Optional[random.Random] = None) -> CatalogItem:
    if not items:
        raise EmptyCandidateSet("No items to select from")
    rng = rng or random.Random()
    return items[int(rng.random() * len(items)) % len(items)]
