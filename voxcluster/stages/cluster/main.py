"""Fine and coarse clustering over one embedding set."""

import logging
from typing import Optional

from voxcluster.errors import EmptyInputError
from voxcluster.schemas import MultiLevelClusters
from voxcluster.stages.cluster.clusterer import CosineKMeansClusterer
from voxcluster.stages.cluster.config import ClusterConfig
from voxcluster.stages.cluster.policy import GroupCountPolicy


def get_multi_level_clusters(vectors, config: Optional[ClusterConfig] = None) -> MultiLevelClusters:
    """Partition the same vectors at fine and coarse granularity.

    Both results index into ``vectors``, so a fine cluster's members can be
    looked up in the coarse result directly. The coarse pass never asks for
    more groups than the fine pass produced.

    Args:
        vectors: Non-empty embedding vectors of equal length
        config: Group-count policies and iteration cap

    Returns:
        MultiLevelClusters with the fine and coarse ClusterResults

    Raises:
        EmptyInputError: If there are no vectors
        ContractViolationError: If the vectors break the clustering preconditions
    """
    if len(vectors) == 0:
        raise EmptyInputError()

    config = config or ClusterConfig()
    clusterer = CosineKMeansClusterer(max_iterations=config.max_iterations)

    # ====== FINE ======
    fine = clusterer.cluster(vectors, config.fine_policy())

    # ====== COARSE ======
    coarse_policy = config.coarse_policy()
    coarse = clusterer.cluster(
        vectors, _capped(coarse_policy, len(fine.clusters))
    )

    logging.info(
        f"Clustered {len(vectors)} comments into {len(fine.clusters)} fine "
        f"and {len(coarse.clusters)} coarse clusters"
    )
    return MultiLevelClusters(fine=fine, coarse=coarse)


def _capped(policy: GroupCountPolicy, limit: int):
    """Wrap a policy so it never returns more than ``limit`` groups."""

    def capped_policy(n_items: int) -> int:
        return min(policy(n_items), limit)

    return capped_policy
