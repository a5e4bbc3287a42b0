import numpy as np


class GrowableArray:
    """
    Append-only numpy array with amortized O(1) appends.
    The backing array doubles when it runs out of room, so views returned by
    view() are only valid until the next append.
    """
    INITIAL_CAPACITY = 1024

    def __init__(self, dtype, capacity=None):
        self.dtype = np.dtype(dtype)
        self._data = np.zeros(capacity or self.INITIAL_CAPACITY, dtype=self.dtype)
        self._size = 0

    def __len__(self):
        return self._size

    def __iter__(self):
        return iter(self.view().tolist())

    def _reserve(self, extra):
        needed = self._size + extra
        if needed <= len(self._data):
            return
        capacity = max(len(self._data) * 2, needed)
        grown = np.zeros(capacity, dtype=self.dtype)
        grown[:self._size] = self._data[:self._size]
        self._data = grown

    def extend(self, values):
        values = np.asarray(values, dtype=self.dtype)
        self._reserve(len(values))
        self._data[self._size:self._size + len(values)] = values
        self._size += len(values)

    def append_zeros(self, count):
        """Appends count zeros and returns the offset of the first one."""
        self._reserve(count)
        offset = self._size
        # slots past _size may hold stale values from before a clear()
        self._data[offset:offset + count] = 0
        self._size += count
        return offset

    def view(self):
        return self._data[:self._size]

    def clear(self):
        self._size = 0
