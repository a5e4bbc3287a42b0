import logging
import time
from collections import namedtuple

from page_rank.config import DEFAULT_MAX_ITERS, DEFAULT_TOLERANCE

log = logging.getLogger(__name__)

IterationResult = namedtuple(
    'IterationResult', ['iterations', 'total_rank_change', 'converged'])


def run_pagerank(graph, max_iters=DEFAULT_MAX_ITERS,
                 tolerance=DEFAULT_TOLERANCE, progress=None):
    """
    Initializes a fully loaded graph and iterates it until it converges.

    At least one iteration always runs. Iteration stops once max_iters
    iterations have run or the total rank change of the last iteration is
    at or below tolerance; converged tells which of the two happened.
    """
    log.info('Nodes: %d, Edges: %d', graph.node_count, graph.edge_count)

    start = time.perf_counter()
    graph.init(progress)
    log.info('Initialized in %.1f ms', (time.perf_counter() - start) * 1000)

    iterations = 0
    start = time.perf_counter()
    while True:
        total_rank_change = graph.next_iteration(progress)
        iterations += 1
        log.debug('Iteration %d: total rank change %g',
                  iterations, total_rank_change)
        if iterations >= max_iters or total_rank_change <= tolerance:
            break
    log.info('Done, %d iterations took %.1f ms',
             iterations, (time.perf_counter() - start) * 1000)

    return IterationResult(iterations, total_rank_change,
                           total_rank_change <= tolerance)
