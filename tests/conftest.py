import pytest

from page_rank.graph import PageRankGraph

# graph and ranks from the Wikipedia PageRank article
WIKI_EDGES = [
    'B C',
    'C B',
    'D A',
    'D B',
    'E D',
    'E B',
    'E F',
    'F E',
    'F B',
    'P1 B',
    'P1 E',
    'P2 B',
    'P2 E',
    'P3 B',
    'P3 E',
    'P4 E',
    'P5 E',
]

# percent of the total rank
WIKI_EXPECTED_RANKS = {
    'A': 3.3,
    'B': 38.4,
    'C': 34.3,
    'D': 3.9,
    'E': 8.1,
    'F': 3.9,
    'P1': 1.6,
    'P2': 1.6,
    'P3': 1.6,
    'P4': 1.6,
    'P5': 1.6,
}


def group_edge_list(edges, weight=1.0):
    """
    Numbers the named nodes of a 'SOURCE DEST' edge list in order of
    appearance and groups the edges by source.
    Returns ({name: id}, {source_id: [(dest_id, weight), ...]}).
    """
    node_ids = {}
    adjacency = {}
    for edge in edges:
        source, dest = edge.split(' ')
        source_id = node_ids.setdefault(source, len(node_ids))
        dest_id = node_ids.setdefault(dest, len(node_ids))
        adjacency.setdefault(source_id, []).append((dest_id, weight))
    return node_ids, adjacency


def load_edge_list(graph, edges):
    node_ids, adjacency = group_edge_list(edges)
    for source_id, node_edges in adjacency.items():
        graph.add_node(source_id, node_edges)
    return node_ids


def iterate(graph, max_iters=150, tolerance=1e-16):
    graph.init()
    iterations = 0
    while True:
        change = graph.next_iteration()
        iterations += 1
        if iterations >= max_iters or change <= tolerance:
            return iterations


@pytest.fixture
def graph():
    with PageRankGraph() as graph:
        yield graph


@pytest.fixture
def disk_graph(tmp_path):
    with PageRankGraph(edge_disk_caching=True, edge_caching_threshold=5,
                       temp_dir=str(tmp_path)) as graph:
        yield graph
