"""Variant selection over phrasing tuples."""

from __future__ import annotations

import random
from typing import Sequence


def select_variant(
    options: Sequence[str],
    seed: int | None = None,
    rng: random.Random | None = None,
) -> str:
    """Pick one phrasing from ``options``.

    With a seed the choice is ``options[abs(seed) % len(options)]``.
    Without one, ``rng`` is used (a call-local ``random.Random`` when not
    supplied); module-level random state is never touched.
    """
    if not options:
        return ""
    if seed is not None:
        return options[abs(seed) % len(options)]
    if rng is None:
        rng = random.Random()
    return options[rng.randrange(len(options))]


class VariantPicker:
    """Binds a seed (or a per-call generator) for one composition pass."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = None if seed is not None else random.Random()

    def pick(self, options: Sequence[str]) -> str:
        return select_variant(options, seed=self.seed, rng=self._rng)
