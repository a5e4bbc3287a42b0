import logging

from conftest import WIKI_EDGES, WIKI_EXPECTED_RANKS, load_edge_list
from page_rank.driver import run_pagerank
from page_rank.graph import PageRankGraph


def test_stops_at_max_iters(graph):
    load_edge_list(graph, WIKI_EDGES)

    result = run_pagerank(graph, max_iters=3, tolerance=0.0)

    assert result.iterations == 3
    assert not result.converged
    assert result.total_rank_change == graph.total_rank_change


def test_stops_at_tolerance(graph):
    load_edge_list(graph, WIKI_EDGES)
    graph.dangling_nodes = True

    result = run_pagerank(graph, max_iters=1000, tolerance=1e-4)

    assert result.converged
    assert 1 < result.iterations < 1000
    assert result.total_rank_change <= 1e-4


def test_runs_at_least_one_iteration(graph):
    graph.add_node(1, [(2, 1.0)])
    graph.add_node(2, [(1, 1.0)])

    result = run_pagerank(graph, max_iters=10, tolerance=1.0)

    assert result.iterations == 1
    assert result.converged


def test_empty_graph(graph):
    result = run_pagerank(graph)

    assert result.iterations == 1
    assert result.converged
    assert list(graph.ranks()) == []


def test_wikipedia_graph_defaults():
    with PageRankGraph(dangling_nodes=True) as graph:
        node_ids = load_edge_list(graph, WIKI_EDGES)
        run_pagerank(graph)

        for name, node_id in node_ids.items():
            rank = graph.get_node_rank(node_id)
            assert abs(WIKI_EXPECTED_RANKS[name] - rank * 100.0) < 0.1, name


def test_logs_graph_size_and_timing(graph, caplog):
    load_edge_list(graph, WIKI_EDGES)

    with caplog.at_level(logging.INFO, logger='page_rank.driver'):
        run_pagerank(graph, max_iters=2)

    messages = [record.getMessage() for record in caplog.records]
    assert 'Nodes: 11, Edges: 17' in messages
    assert any(message.startswith('Done, 2 iterations') for message in messages)


def test_progress_is_passed_through(graph):
    load_edge_list(graph, WIKI_EDGES)
    calls = []

    run_pagerank(graph, max_iters=2, progress=lambda: calls.append(1))

    assert calls
