from .workset import Workset, build_workset, map_worksets
from .vector_function import VectorFunction

__all__ = ["Workset", "build_workset", "map_worksets", "VectorFunction"]
