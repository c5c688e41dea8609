from connection_core.storage.query.filters import FilterCompiler
from connection_core.storage.query.plan import QueryPlan, build_plan
from connection_core.storage.query.sorting import SortCompiler, SortKey

__all__ = [
    "FilterCompiler",
    "QueryPlan",
    "SortCompiler",
    "SortKey",
    "build_plan",
]
