from __future__ import annotations

import random
from collections.abc import Sequence

from cryptonews.config import DEFAULT_PLACEHOLDER_IMAGES


def placeholder_image(
    pool: Sequence[str] = DEFAULT_PLACEHOLDER_IMAGES,
    rng: random.Random | None = None,
) -> str:
    """Pick a stock image for articles whose source has none."""
    if not pool:
        return ""
    return (rng or random).choice(list(pool))
