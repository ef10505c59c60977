"""Git state and history engine with CLI and MCP tool surfaces."""

from .aggregate import aggregate
from .branches import BranchFetcher
from .engine import GitStateEngine
from .errors import ErrorCode, GitCommandError, GitStateError
from .graph import build_graph, graph_width
from .history import HistoryFetcher
from .models import Branch, Commit, FileStatus, GraphLine, GraphRow
from .runner import CommandRunner
from .status import StatusFetcher

__version__ = "0.1.0"

__all__ = [
    "Branch",
    "BranchFetcher",
    "CommandRunner",
    "Commit",
    "ErrorCode",
    "FileStatus",
    "GitCommandError",
    "GitStateEngine",
    "GitStateError",
    "GraphLine",
    "GraphRow",
    "HistoryFetcher",
    "StatusFetcher",
    "aggregate",
    "build_graph",
    "graph_width",
]
