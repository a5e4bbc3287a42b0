"""
Edge storage for a single graph.

Edges are stored as a flat stream of int32 values. Each source node writes a
header followed by one entry per outgoing edge:

    source_id, out_degree, dest_id, scaled_weight, dest_id, scaled_weight, ...

The stream starts out in memory. When disk caching is enabled and the edge
count would go past the threshold, the stream moves to a temporary file once
and stays there until the store is closed. Readers never need to know which
backing is in use: read() replays the same sequence of ints either way.
"""

import logging
import os
import tempfile

import numpy as np

from page_rank.buffers import GrowableArray
from page_rank.config import DEFAULT_MAX_EDGES_IN_MEMORY
from page_rank.errors import EdgeStorageError

log = logging.getLogger(__name__)

# little-endian so the temp file layout doesn't depend on the host
EDGE_DTYPE = np.dtype('<i4')

# number of ints pulled from the backing store per read
READ_CHUNK = 1 << 16


class InMemoryEdges:
    """Edge stream held in a growable int32 array."""
    on_disk = False

    def __init__(self):
        self._buffer = GrowableArray(EDGE_DTYPE)

    def write(self, values):
        self._buffer.extend(values)

    def contents(self):
        return self._buffer.view()

    def read(self):
        data = self._buffer.view()
        for start in range(0, len(data), READ_CHUNK):
            yield from data[start:start + READ_CHUNK].tolist()

    def close(self):
        self._buffer.clear()


class DiskBackedEdges:
    """
    Edge stream held in a temporary file.
    The write stream stays open for appends; every read() flushes it and
    opens a fresh read stream from the start of the file.
    """
    on_disk = True

    def __init__(self, initial=(), directory=None):
        self.path = None
        self._stream = None
        try:
            fd, self.path = tempfile.mkstemp(
                prefix='page_rank_edges_', suffix='.bin', dir=directory)
            self._stream = os.fdopen(fd, 'wb')
        except OSError as e:
            self.close()
            raise EdgeStorageError(
                'Could not create edge cache file: %s' % e) from e
        try:
            self.write(initial)
        except EdgeStorageError:
            self.close()
            raise

    def write(self, values):
        data = np.asarray(values, dtype=EDGE_DTYPE)
        try:
            self._stream.write(data.tobytes())
        except (OSError, ValueError) as e:
            # ValueError: write to a closed stream
            raise EdgeStorageError(
                'Could not write to edge cache file %s: %s' % (self.path, e)) from e

    def _chunks(self):
        try:
            self._stream.flush()
            with open(self.path, 'rb') as f:
                while True:
                    raw = f.read(READ_CHUNK * EDGE_DTYPE.itemsize)
                    if not raw:
                        return
                    yield np.frombuffer(raw, dtype=EDGE_DTYPE)
        except (OSError, ValueError) as e:
            raise EdgeStorageError(
                'Could not read edge cache file %s: %s' % (self.path, e)) from e

    def read(self):
        for chunk in self._chunks():
            yield from chunk.tolist()

    def close(self):
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        if self.path is not None:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                pass
            self.path = None


class EdgeStore:
    """
    Append-only edge stream that spills from memory to disk at most once.

    Disk caching is off by default. When it is on, maybe_spill() moves the
    stream to a temporary file the first time the projected edge count goes
    past the threshold. There is no way back to memory short of close().
    """

    def __init__(self, disk_caching=False,
                 caching_threshold=DEFAULT_MAX_EDGES_IN_MEMORY, directory=None):
        self.disk_caching = disk_caching
        self.caching_threshold = caching_threshold
        self.directory = directory
        self._backing = InMemoryEdges()

    @property
    def on_disk(self):
        return self._backing.on_disk

    @property
    def path(self):
        """Path of the temp file, or None while edges are in memory."""
        return getattr(self._backing, 'path', None)

    def maybe_spill(self, projected_edge_count):
        """
        Moves the stream to disk if caching is enabled, the store hasn't
        already spilled and projected_edge_count is over the threshold.
        Returns True if this call triggered the move.
        """
        if (not self.disk_caching or self.on_disk
                or projected_edge_count <= self.caching_threshold):
            return False
        self.spill()
        return True

    def spill(self):
        if self.on_disk:
            raise EdgeStorageError('Edges have already been moved to disk')
        in_memory = self._backing
        self._backing = DiskBackedEdges(in_memory.contents(), self.directory)
        in_memory.close()
        log.info('Edge count over %d, caching edges on disk in %s',
                 self.caching_threshold, self._backing.path)

    def append_header(self, source_id, out_degree):
        self._backing.write((source_id, out_degree))

    def append_entries(self, entries):
        """Appends the flat dest_id, scaled_weight, ... run for one source."""
        self._backing.write(entries)

    def read(self):
        """
        Returns a lazy, single-pass iterator over every stored int in
        insertion order. Each call starts again from the beginning.
        Only one iterator should be consumed at a time.
        """
        return self._backing.read()

    def close(self):
        """Drops all edges and deletes the temp file, if any."""
        self._backing.close()
        self._backing = InMemoryEdges()
