"""Target group-count policies for the fine and coarse partitioning passes."""

import math
from dataclasses import dataclass
from typing import Optional


def clamp_group_count(k: int, n_items: int) -> int:
    """Clamp a requested group count to ``[1, n_items]``."""
    return max(1, min(int(k), n_items))


@dataclass(frozen=True)
class GroupCountPolicy:
    """Maps the number of items N to a desired number of groups K.

    K = ceil(N / divisor), bounded below by ``min_groups`` and above by
    ``max_groups`` (if set), and finally clamped to ``[1, N]``.

    Attributes:
        divisor: Average number of items per group
        min_groups: Lower bound on K before clamping to N
        max_groups: Optional upper bound on K
    """

    divisor: float
    min_groups: int = 1
    max_groups: Optional[int] = None

    def __post_init__(self):
        if self.divisor <= 0:
            raise ValueError(f"divisor must be positive, got {self.divisor}")
        if self.min_groups < 1:
            raise ValueError(f"min_groups must be >= 1, got {self.min_groups}")
        if self.max_groups is not None and self.max_groups < self.min_groups:
            raise ValueError("max_groups must be >= min_groups")

    def __call__(self, n_items: int) -> int:
        if n_items <= 0:
            return 0
        k = max(self.min_groups, math.ceil(n_items / self.divisor))
        if self.max_groups is not None:
            k = min(k, self.max_groups)
        return clamp_group_count(k, n_items)


# Many small, tight groups: roughly five comments per group, at least five groups
FINE_POLICY = GroupCountPolicy(divisor=5, min_groups=5)

# A few broad themes: max(2, min(8, ceil(N / 20)))
COARSE_POLICY = GroupCountPolicy(divisor=20, min_groups=2, max_groups=8)
