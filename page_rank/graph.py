"""
An in-memory implementation of PageRank for one graph at a time.

This is not a distributed implementation. The whole graph is held by a single
process while the algorithm runs, with edges optionally spilled to a temp
file to conserve memory. Many modestly sized graphs can be ranked in
parallel by giving each worker its own PageRankGraph.

Typical use:

    with PageRankGraph(dangling_nodes=True) as graph:
        for source, edges in adjacency:
            graph.add_node(source, edges)
        graph.init()
        while graph.next_iteration() > tolerance:
            pass
        ranks = dict(graph.ranks())
"""

import logging
import math
from itertools import islice

import numpy as np

from page_rank.config import DEFAULT_ALPHA, DEFAULT_MAX_EDGES_IN_MEMORY
from page_rank.edges import EdgeStore
from page_rank.errors import ConfigurationError, EdgeStorageError, PageRankError
from page_rank.nodes import BIAS, CONTRIBUTION, RANK, TOTAL_WEIGHT, NodeTable

log = logging.getLogger(__name__)

# edge weights (doubles) are multiplied by this value so they can be stored
# as integers
EDGE_WEIGHT_MULTIPLIER = 100000

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1

# approximate number of edges decoded into arrays at a time while replaying
REPLAY_BATCH = 1 << 16


def scale_weight(weight):
    """
    Converts an edge weight to the integer form kept in the edge store.
    Tiny positive (and all non-positive) weights floor to 1, the smallest
    storable unit.
    """
    if not math.isfinite(weight):
        raise ConfigurationError('Edge weight must be finite, got %r' % weight)
    scaled = max(1, int(round(weight * EDGE_WEIGHT_MULTIPLIER)))
    if scaled > INT32_MAX:
        raise ConfigurationError('Edge weight %r is too large' % weight)
    return scaled


def _check_node_id(node_id):
    if not INT32_MIN <= node_id <= INT32_MAX:
        raise ConfigurationError('Node id %r does not fit in 32 bits' % node_id)


def _edge_batch(sources, dests, weights):
    return (np.array(sources, dtype=np.intp),
            np.array(dests, dtype=np.intp),
            np.array(weights, dtype=np.float64))


class PageRankGraph:
    """
    Node and edge storage plus the PageRank iteration for one graph.

    Options must be set before the first add_node(). The graph is built once
    with add_node(), initialized once with init(), iterated with
    next_iteration() until the caller is satisfied, read with ranks(), and
    cleared with clear() before it is reused. It is not safe to share between
    threads.
    """

    def __init__(self, alpha=DEFAULT_ALPHA, dangling_nodes=False,
                 node_biasing=False, edge_disk_caching=False,
                 edge_caching_threshold=DEFAULT_MAX_EDGES_IN_MEMORY,
                 temp_dir=None):
        self.alpha = alpha
        self.dangling_nodes = dangling_nodes
        self._nodes = NodeTable(with_bias=node_biasing)
        self._edges = EdgeStore(edge_disk_caching, edge_caching_threshold,
                                temp_dir)
        self._dangling = np.empty(0, dtype=np.intp)
        self._initialized = False
        self.edge_count = 0
        self.total_rank_change = 0.0

    @classmethod
    def from_config(cls, config, temp_dir=None):
        return cls(temp_dir=temp_dir, **config.graph_options())

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.clear()

    @property
    def alpha(self):
        """The damping factor, the probability of following an edge."""
        return self._alpha

    @alpha.setter
    def alpha(self, alpha):
        if not 0.0 <= alpha <= 1.0:
            raise ConfigurationError('alpha must be in [0, 1], got %r' % alpha)
        self._alpha = alpha

    @property
    def node_biasing(self):
        return self._nodes.with_bias

    @node_biasing.setter
    def node_biasing(self, enabled):
        # the record stride depends on this, so it can't change under live nodes
        if len(self._nodes):
            raise ConfigurationError(
                'Node biasing cannot be changed once nodes have been added')
        self._nodes = NodeTable(with_bias=enabled)

    @property
    def edge_disk_caching(self):
        return self._edges.disk_caching

    @edge_disk_caching.setter
    def edge_disk_caching(self, enabled):
        self._edges.disk_caching = enabled

    @property
    def edge_caching_threshold(self):
        """Edge count past which edges are cached on disk, if enabled."""
        return self._edges.caching_threshold

    @edge_caching_threshold.setter
    def edge_caching_threshold(self, count):
        self._edges.caching_threshold = count

    @property
    def node_count(self):
        return len(self._nodes)

    def is_using_disk_cache(self):
        return self._edges.on_disk

    def add_node(self, source_id, edges, bias=1.0):
        """
        Adds a source node with all of its outgoing edges.

        edges is an iterable of (dest_id, weight) pairs. Every edge of a
        source must arrive in this one call. Destination nodes are created as
        needed. bias only takes effect with node biasing enabled; a bias of
        1.0 (the default) means no bias.
        """
        edges = list(edges)
        _check_node_id(source_id)
        entries = []
        for dest_id, weight in edges:
            _check_node_id(dest_id)
            entries.append(dest_id)
            entries.append(scale_weight(weight))
        if not self.node_biasing and bias != 1.0:
            # without biasing every node implicitly has a bias of 1.0, so
            # anything else would be silently ignored
            raise ConfigurationError(
                'Bias was specified but node biasing not enabled')

        self._nodes.ensure(source_id)
        if self.node_biasing:
            self._nodes.set_bias(source_id, bias)

        self._edges.maybe_spill(self.edge_count + len(edges))

        for dest_id, _ in edges:
            self._nodes.ensure(dest_id)
        self._edges.append_header(source_id, len(edges))
        self._edges.append_entries(entries)
        self.edge_count += len(edges)
        self._initialized = False

    def _replay(self, progress=None):
        """
        Reads the edge store back as (source_indices, dest_indices, weights)
        numpy arrays with one element per edge, in insertion order. Edges are
        decoded in batches of about REPLAY_BATCH so memory use stays bounded
        when they live on disk.
        """
        index = self._nodes.index
        stream = self._edges.read()
        sources, dests, weights = [], [], []
        for source_id in stream:
            out_degree = next(stream, None)
            if out_degree is None:
                raise EdgeStorageError(
                    'Edge data for node %d is truncated' % source_id)
            entries = list(islice(stream, 2 * out_degree))
            if len(entries) != 2 * out_degree:
                raise EdgeStorageError(
                    'Edge data for node %d is truncated' % source_id)
            sources.extend([index(source_id)] * out_degree)
            dests.extend(map(index, entries[0::2]))
            weights.extend(entries[1::2])
            if len(dests) >= REPLAY_BATCH:
                yield _edge_batch(sources, dests, weights)
                sources, dests, weights = [], [], []
                if progress is not None:
                    progress()
        if dests:
            yield _edge_batch(sources, dests, weights)
            if progress is not None:
                progress()

    def init(self, progress=None):
        """
        Prepares the graph for iterating. Must be called after every node has
        been added and before the first iteration.

        Every node starts with an equal share of the total rank. With node
        biasing, biases are normalized to sum to 1. The total outgoing weight
        of each node is summed from the edges, and with dangling node
        handling the nodes without outgoing weight are collected.
        """
        self.total_rank_change = 0.0
        self._dangling = np.empty(0, dtype=np.intp)
        node_count = self.node_count
        if node_count == 0:
            self._initialized = True
            return

        records = self._nodes.records()
        records[:, RANK] = np.float32(1.0) / np.float32(node_count)
        records[:, TOTAL_WEIGHT] = 0.0
        records[:, CONTRIBUTION] = 0.0

        if self.node_biasing:
            total_bias = float(records[:, BIAS].sum(dtype=np.float64))
            if not total_bias > 0.0:
                raise ConfigurationError(
                    'Total node bias must be positive, got %r' % total_bias)
            records[:, BIAS] /= total_bias

        total_weights = records[:, TOTAL_WEIGHT]
        for sources, _, weights in self._replay(progress):
            np.add.at(total_weights, sources, weights.astype(np.float32))

        if self.dangling_nodes:
            self._dangling = np.flatnonzero(total_weights == 0.0)

        self._initialized = True
        log.debug('Initialized graph with %d nodes, %d edges, %d dangling',
                  node_count, self.edge_count, len(self._dangling))

    def _check_initialized(self):
        if not self._initialized:
            raise PageRankError('init() must be called before iterating')

    def distribute(self, progress=None):
        """
        Pushes each node's rank along its outgoing edges into the pending
        contribution of the destinations, in proportion to edge weight.
        With dangling node handling, the rank held by dangling nodes is
        spread evenly over every node. Alpha is applied later, in commit().
        """
        self._check_initialized()
        records = self._nodes.records()
        ranks = records[:, RANK]
        total_weights = records[:, TOTAL_WEIGHT]
        contributions = records[:, CONTRIBUTION]

        for sources, dests, weights in self._replay(progress):
            # every source in a batch has edges, so its total weight is nonzero
            shares = (ranks[sources].astype(np.float64)
                      / total_weights[sources].astype(np.float64))
            np.add.at(contributions, dests,
                      (weights * shares).astype(np.float32))

        if len(self._dangling):
            dangling_rank = float(ranks[self._dangling].sum(dtype=np.float64))
            contributions += np.float32(dangling_rank / self.node_count)

    def commit(self, progress=None):
        """
        Folds the pending contributions into the ranks and resets them.
        Returns the total absolute rank change, which is also kept in
        total_rank_change until the next commit.
        """
        self._check_initialized()
        self.total_rank_change = 0.0
        node_count = self.node_count
        if node_count == 0:
            return self.total_rank_change

        records = self._nodes.records()
        ranks = records[:, RANK]
        contributions = records[:, CONTRIBUTION]
        one_minus_alpha = 1.0 - self.alpha

        if self.node_biasing:
            new_ranks = records[:, BIAS] * one_minus_alpha + self.alpha * contributions
        else:
            new_ranks = one_minus_alpha / node_count + self.alpha * contributions
        new_ranks = new_ranks.astype(np.float32)

        self.total_rank_change = float(
            np.abs(new_ranks - ranks).sum(dtype=np.float64))
        ranks[:] = new_ranks
        contributions[:] = 0.0

        if progress is not None:
            progress()
        return self.total_rank_change

    def next_iteration(self, progress=None):
        """Runs one distribute() and commit() and returns the total rank change."""
        self.distribute(progress)
        return self.commit(progress)

    def node_ids(self):
        return self._nodes.id_list()

    def get_node_rank(self, node_id):
        return self._nodes.rank(node_id)

    def get_node_total_weight(self, node_id):
        """Total scaled outgoing weight; zero before init() or for dangling nodes."""
        return self._nodes.total_weight(node_id)

    def get_node_bias(self, node_id):
        return self._nodes.bias(node_id)

    def set_node_bias(self, node_id, bias):
        self._nodes.set_bias(node_id, bias)

    def dangling_node_ids(self):
        """Ids of the dangling nodes found by init(); empty unless handled."""
        ids = self._nodes.id_list()
        return [ids[i] for i in self._dangling.tolist()]

    def ranks(self):
        """Yields (node_id, rank) for every node."""
        rank_column = self._nodes.records()[:, RANK].tolist()
        return zip(self._nodes.id_list(), rank_column)

    def clear(self):
        """
        Drops every node and edge, deleting the edge cache file if there is
        one, so the graph can be reused. Safe to call more than once.
        """
        self.edge_count = 0
        self.total_rank_change = 0.0
        self._nodes.clear()
        self._edges.close()
        self._dangling = np.empty(0, dtype=np.intp)
        self._initialized = False
