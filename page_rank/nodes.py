import numpy as np

from page_rank.buffers import GrowableArray
from page_rank.errors import NodeBiasingDisabledError, UnknownNodeError

# field offsets inside a node record
RANK = 0
TOTAL_WEIGHT = 1
CONTRIBUTION = 2
BIAS = 3


class NodeTable:
    """
    Dense registry of node records.

    Each node gets a fixed-stride float32 record (rank, total outgoing
    weight, pending contribution and, when biasing is on, bias) appended to
    one flat array. The dict maps the external node id to the record index;
    because it is append-only, its iteration order is also the index order.
    """

    def __init__(self, with_bias=False):
        self.with_bias = with_bias
        self.stride = 4 if with_bias else 3
        self._indices = {}
        self._data = GrowableArray(np.float32)

    def __len__(self):
        return len(self._indices)

    def __contains__(self, node_id):
        return node_id in self._indices

    def ensure(self, node_id):
        """
        Returns the index of node_id, appending a zeroed record first if the
        node has not been seen before.
        """
        index = self._indices.get(node_id)
        if index is None:
            index = len(self._indices)
            self._data.append_zeros(self.stride)
            self._indices[node_id] = index
        return index

    def index(self, node_id):
        try:
            return self._indices[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def id_list(self):
        """Node ids ordered by record index."""
        return list(self._indices)

    def records(self):
        """
        A (node_count, stride) view over the live records. Writes through the
        view update the table. Invalid after the next ensure().
        """
        return self._data.view().reshape(len(self._indices), self.stride)

    def get(self, node_id, field):
        return float(self._data.view()[self.index(node_id) * self.stride + field])

    def set(self, node_id, field, value):
        self._data.view()[self.index(node_id) * self.stride + field] = value

    def rank(self, node_id):
        return self.get(node_id, RANK)

    def total_weight(self, node_id):
        return self.get(node_id, TOTAL_WEIGHT)

    def bias(self, node_id):
        if not self.with_bias:
            raise NodeBiasingDisabledError()
        return self.get(node_id, BIAS)

    def set_bias(self, node_id, bias):
        if not self.with_bias:
            raise NodeBiasingDisabledError()
        self.set(node_id, BIAS, bias)

    def clear(self):
        self._indices.clear()
        self._data.clear()
