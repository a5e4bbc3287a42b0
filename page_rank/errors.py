class PageRankError(Exception):
    """Base class for errors raised while building or ranking a graph."""


class ConfigurationError(PageRankError, ValueError):
    """An option or argument is invalid for how the graph is configured."""


class NodeBiasingDisabledError(PageRankError, RuntimeError):
    """Node bias was read or written on a graph without node biasing."""

    def __init__(self):
        super().__init__("Node biasing not enabled")


class UnknownNodeError(PageRankError, KeyError):
    """A node id was looked up that the graph has never seen."""


class EdgeStorageError(PageRankError, OSError):
    """The temporary file backing the edges could not be written or read.
    The graph holding the edges is unusable afterwards and must be cleared."""
