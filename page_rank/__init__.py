from page_rank.config import PageRankConfig
from page_rank.driver import IterationResult, run_pagerank
from page_rank.errors import (
    ConfigurationError,
    EdgeStorageError,
    NodeBiasingDisabledError,
    PageRankError,
    UnknownNodeError,
)
from page_rank.graph import EDGE_WEIGHT_MULTIPLIER, PageRankGraph, scale_weight

__all__ = [
    'ConfigurationError',
    'EDGE_WEIGHT_MULTIPLIER',
    'EdgeStorageError',
    'IterationResult',
    'NodeBiasingDisabledError',
    'PageRankConfig',
    'PageRankError',
    'PageRankGraph',
    'UnknownNodeError',
    'run_pagerank',
    'scale_weight',
]
