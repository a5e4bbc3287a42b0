# wikipedia_graph.py
# Ranks the example graph from the Wikipedia PageRank article with MRPageRank.
#
#   python example/wikipedia_graph.py
from io import BytesIO

from page_rank.job import MRPageRank

# (source, dest) pairs; every edge has weight 1.0
EDGES = [
    ('B', 'C'), ('C', 'B'),
    ('D', 'A'), ('D', 'B'),
    ('E', 'D'), ('E', 'B'), ('E', 'F'),
    ('F', 'E'), ('F', 'B'),
    ('P1', 'B'), ('P1', 'E'),
    ('P2', 'B'), ('P2', 'E'),
    ('P3', 'B'), ('P3', 'E'),
    ('P4', 'E'),
    ('P5', 'E'),
]

TOPIC = 1


def edge_lines(edges, node_ids):
    """Encodes named edges as job input lines, numbering nodes as they appear."""
    for source, dest in edges:
        for name in (source, dest):
            node_ids.setdefault(name, len(node_ids))
        yield '%d\t%d\t%d\t1.0\n' % (TOPIC, node_ids[source], node_ids[dest])


def main():
    node_ids = {}
    data = ''.join(edge_lines(EDGES, node_ids)).encode('utf-8')
    names = {node_id: name for name, node_id in node_ids.items()}

    # dangling node handling is needed here: A has no outgoing edges
    job = MRPageRank(['-r', 'inline', '--no-conf', '--dangling-nodes', '-'])
    job.sandbox(stdin=BytesIO(data))

    with job.make_runner() as runner:
        runner.run()
        ranks = {names[node_id]: rank
                 for (_, node_id), rank in job.parse_output(runner.cat_output())}

    for name, rank in sorted(ranks.items(), key=lambda item: -item[1]):
        print('%-3s %5.1f%%' % (name, rank * 100))


# This makes the script runnable from the command line
if __name__ == '__main__':
    main()
