from .main import get_multi_level_clusters
from .config import ClusterConfig
from .clusterer import CosineKMeansClusterer, partition
from .policy import COARSE_POLICY, FINE_POLICY, GroupCountPolicy
from .similarity import similarity

__all__ = [
    "get_multi_level_clusters",
    "ClusterConfig",
    "CosineKMeansClusterer",
    "partition",
    "GroupCountPolicy",
    "FINE_POLICY",
    "COARSE_POLICY",
    "similarity",
]
