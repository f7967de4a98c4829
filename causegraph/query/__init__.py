"""Read-only queries over a loaded graph: filtering and neighborhoods."""

from .filters import FilteredGraph, FilterEngine
from .subgraph import Subgraph, SubgraphExtractor, neighborhood

__all__ = ["FilteredGraph", "FilterEngine", "Subgraph", "SubgraphExtractor", "neighborhood"]
