from dataclasses import dataclass

DEFAULT_ALPHA = 0.85
DEFAULT_MAX_ITERS = 150
DEFAULT_TOLERANCE = 1e-16
DEFAULT_MAX_EDGES_IN_MEMORY = 30000000
DEFAULT_MAX_NODES_AND_EDGES = 100000000


@dataclass
class PageRankConfig:
    """
    Options for ranking one topic's graph.
    The first five are passed to PageRankGraph; the rest control the
    iteration loop and the size guard applied while a graph is loaded.
    """
    alpha: float = DEFAULT_ALPHA
    dangling_nodes: bool = False
    node_biasing: bool = False
    edge_disk_caching: bool = False
    edge_caching_threshold: int = DEFAULT_MAX_EDGES_IN_MEMORY
    max_iters: int = DEFAULT_MAX_ITERS
    tolerance: float = DEFAULT_TOLERANCE
    max_nodes_and_edges: int = DEFAULT_MAX_NODES_AND_EDGES

    GRAPH_OPTIONS = ('alpha', 'dangling_nodes', 'node_biasing',
                     'edge_disk_caching', 'edge_caching_threshold')

    @classmethod
    def from_options(cls, options):
        """Builds a config from the parsed command line of an MRPageRank job."""
        return cls(
            alpha=options.alpha,
            dangling_nodes=options.dangling_nodes,
            node_biasing=options.node_biasing,
            edge_disk_caching=options.spill_to_edge_disk_storage,
            edge_caching_threshold=options.max_edges_in_memory,
            max_iters=options.max_iters,
            tolerance=options.tolerance,
            max_nodes_and_edges=options.max_nodes_and_edges,
        )

    def graph_options(self):
        return {name: getattr(self, name) for name in self.GRAPH_OPTIONS}


def add_job_options(job):
    """Registers the ranking options as passthrough args on an MRJob."""
    job.add_passthru_arg(
        '--alpha', type=float, default=DEFAULT_ALPHA,
        help='Damping factor; the chance of following an edge rather than'
             ' jumping to a random node (default %(default)s)')
    job.add_passthru_arg(
        '--max-iters', dest='max_iters', type=int, default=DEFAULT_MAX_ITERS,
        help='Maximum number of iterations per topic (default %(default)s)')
    job.add_passthru_arg(
        '--tolerance', type=float, default=DEFAULT_TOLERANCE,
        help='Stop iterating once the total rank change is at or below this'
             ' (default %(default)s)')
    job.add_passthru_arg(
        '--dangling-nodes', dest='dangling_nodes', action='store_true',
        default=False,
        help='Redistribute the rank of nodes without outgoing edges to every'
             ' node')
    job.add_passthru_arg(
        '--node-biasing', dest='node_biasing', action='store_true',
        default=False,
        help='Use per-node bias for the random jump (personalized PageRank)')
    job.add_passthru_arg(
        '--spill-to-edge-disk-storage', dest='spill_to_edge_disk_storage',
        action='store_true', default=False,
        help='Move edges to a temp file once there are too many to keep in'
             ' memory')
    job.add_passthru_arg(
        '--max-edges-in-memory', dest='max_edges_in_memory', type=int,
        default=DEFAULT_MAX_EDGES_IN_MEMORY,
        help='Edge count past which edges spill to disk (default %(default)s)')
    job.add_passthru_arg(
        '--max-nodes-and-edges', dest='max_nodes_and_edges', type=int,
        default=DEFAULT_MAX_NODES_AND_EDGES,
        help='Skip topics whose graph grows past this many nodes plus edges'
             ' (default %(default)s)')
