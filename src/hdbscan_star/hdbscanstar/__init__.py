"""HDBSCAN* building blocks: core distances, MST, hierarchy, selection and scoring."""

from .cluster import Cluster
from .core_distances import UNSET_DISTANCE, calculate_core_distances
from .graph import UndirectedGraph
from .hierarchy import NOISE_LABEL, ROOT_LABEL, HierarchyResult, compute_hierarchy_and_cluster_tree
from .mst import construct_mst, mutual_reachability
from .outliers import OutlierScore, calculate_outlier_scores
from .partition import find_prominent_clusters, selected_labels
from .propagation import propagate_tree

__all__ = [
    "NOISE_LABEL",
    "ROOT_LABEL",
    "UNSET_DISTANCE",
    "Cluster",
    "HierarchyResult",
    "OutlierScore",
    "UndirectedGraph",
    "calculate_core_distances",
    "calculate_outlier_scores",
    "compute_hierarchy_and_cluster_tree",
    "construct_mst",
    "find_prominent_clusters",
    "mutual_reachability",
    "propagate_tree",
    "selected_labels",
]
