"""Graph model and dataset loading."""

from .loader import graph_set_from_dict, load_graph_set
from .model import GraphModel, GraphSet

__all__ = ["GraphModel", "GraphSet", "graph_set_from_dict", "load_graph_set"]
