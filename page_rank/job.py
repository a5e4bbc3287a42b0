"""
MapReduce job that runs PageRank on many independent graphs, one per topic.

Each graph is ranked in memory by a single reducer call (see
page_rank.graph), so the job scales with the number of topics rather than
with the size of any one graph.

Input lines are tab separated:

    topic   source  dest    [weight]    an edge, weight defaults to 1.0
    topic   source  !NODE   [bias]      a node with no edges, or its bias

Output is one record per node: [topic, node] -> rank.

    python -m page_rank.job --dangling-nodes edges.tsv
"""

import logging
import time

from mrjob.job import MRJob
from mrjob.step import MRStep

from page_rank.config import PageRankConfig, add_job_options
from page_rank.driver import run_pagerank
from page_rank.errors import PageRankError
from page_rank.graph import PageRankGraph

log = logging.getLogger(__name__)

NODE_MARKER = '!NODE'

# seconds between status updates while a topic is being ranked
STATUS_INTERVAL = 30.0


class MRPageRank(MRJob):
    """
    Step 1: group each topic's edges by source node.
    Step 2: load each topic's graph into memory and iterate it to convergence.
    """

    def configure_args(self):
        super().configure_args()
        add_job_options(self)

    @property
    def ranking_config(self):
        return PageRankConfig.from_options(self.options)

    # GROUPING STEP
    def mapper_parse_edges(self, _, line):
        """
        Input: one line of topic/source/dest/weight text.
        Output: key [topic, source], value ('EDGE', dest, weight) or
                ('NODE', bias). bias is None when the line doesn't give one.
        """
        parts = line.rstrip('\r\n').split('\t')
        try:
            topic = int(parts[0])
            source = int(parts[1])
            if len(parts) == 2:
                yield (topic, source), ('NODE', None)
            elif parts[2] == NODE_MARKER and len(parts) <= 4:
                bias = float(parts[3]) if len(parts) == 4 else None
                yield (topic, source), ('NODE', bias)
            elif len(parts) <= 4:
                dest = int(parts[2])
                weight = float(parts[3]) if len(parts) == 4 else 1.0
                yield (topic, source), ('EDGE', dest, weight)
            else:
                raise ValueError('too many fields')
        except (IndexError, ValueError):
            self.increment_counter('Error', 'MalformedLine', 1)

    def reducer_group_edges(self, key, values):
        """
        Input: key [topic, source], every value the mapper emitted for it.
        Output: key topic, value (source, [[dest, weight], ...], bias).
        """
        topic, source = key
        edges = []
        bias = 1.0

        for value in values:
            if value[0] == 'EDGE':
                edges.append((value[1], value[2]))
            elif value[1] is not None:
                bias = value[1]

        yield topic, (source, edges, bias)

    # RANKING STEP
    def reducer_init_graph(self):
        # one graph per reducer task, cleared after every topic
        self._ranking_config = self.ranking_config
        self._graph = PageRankGraph.from_config(self._ranking_config)
        self._topic = None
        self._last_status = 0.0

    def _report_progress(self):
        now = time.monotonic()
        if now - self._last_status >= STATUS_INTERVAL:
            self.set_status('ranking topic %s' % self._topic)
            self._last_status = now

    def reducer_rank_topic(self, topic, sources):
        """
        Input: key topic, the (source, edges, bias) records of its graph.
        Output: key [topic, node], value rank, for every node of the graph.
                Nothing is output for a topic whose graph is too large or
                fails while being ranked.
        """
        config = self._ranking_config
        self._topic = topic

        with self._graph as graph:
            try:
                for source, edges, bias in sources:
                    if config.node_biasing:
                        graph.add_node(source, edges, bias)
                    else:
                        graph.add_node(source, edges)

                    size = graph.node_count + graph.edge_count
                    if size > config.max_nodes_and_edges:
                        log.warning(
                            'Topic %s: too many nodes and edges (%d + %d > %d).'
                            ' Aborting.', topic, graph.node_count,
                            graph.edge_count, config.max_nodes_and_edges)
                        self.increment_counter('PageRank', 'AbortedTopics', 1)
                        return
                    self._report_progress()

                result = run_pagerank(graph, config.max_iters,
                                      config.tolerance, self._report_progress)
            except PageRankError:
                log.exception('Topic %s: PageRank failed', topic)
                self.increment_counter('PageRank', 'FailedTopics', 1)
                return

            if not result.converged:
                self.increment_counter('PageRank', 'UnconvergedTopics', 1)
            self.increment_counter('PageRank', 'RankedTopics', 1)

            for node_id, rank in graph.ranks():
                yield (topic, node_id), rank

    def steps(self):
        return [
            MRStep(mapper=self.mapper_parse_edges,
                   reducer=self.reducer_group_edges),
            MRStep(reducer_init=self.reducer_init_graph,
                   reducer=self.reducer_rank_topic),
        ]


def main():
    MRPageRank.run()


if __name__ == '__main__':
    main()
