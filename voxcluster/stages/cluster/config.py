from dataclasses import dataclass
from typing import Optional

from voxcluster.stages.cluster.policy import GroupCountPolicy


@dataclass
class ClusterConfig:
    # Fine pass params
    fine_divisor: float = 5
    fine_min_groups: int = 5
    fine_max_groups: Optional[int] = None

    # Coarse pass params
    coarse_divisor: float = 20
    coarse_min_groups: int = 2
    coarse_max_groups: Optional[int] = 8

    # k-means params
    max_iterations: int = 50

    @classmethod
    def from_dict(cls, config_dict):
        # Creates config from dict, using defaults for missing keys.
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})

    def fine_policy(self) -> GroupCountPolicy:
        return GroupCountPolicy(
            divisor=self.fine_divisor,
            min_groups=self.fine_min_groups,
            max_groups=self.fine_max_groups,
        )

    def coarse_policy(self) -> GroupCountPolicy:
        return GroupCountPolicy(
            divisor=self.coarse_divisor,
            min_groups=self.coarse_min_groups,
            max_groups=self.coarse_max_groups,
        )
