from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")
U = TypeVar("U")


class _WireModel(BaseModel):  # type: ignore[misc]
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageInfo(_WireModel):
    has_next_page: bool
    has_previous_page: bool
    start_cursor: str | None = None
    end_cursor: str | None = None


class Edge(_WireModel, Generic[T]):
    cursor: str
    node: T


class FacetValue(_WireModel):
    value: str | None
    count: int = Field(ge=0)


class Facet(_WireModel):
    field: str
    values: list[FacetValue] = []


class Connection(_WireModel, Generic[T]):
    """
    Relay connection returned by every list query.

    ``total_count`` is the size of the filtered set independent of the
    pagination window. ``facets`` is always present, empty when no facet
    was requested.
    """

    edges: list[Edge[T]] = []
    page_info: PageInfo
    total_count: int = Field(ge=0)
    facets: list[Facet] = []

    @property
    def nodes(self) -> list[T]:
        return [edge.node for edge in self.edges]

    def map_nodes(self, func: Callable[[T], U]) -> "Connection[U]":
        """
        Return a copy of the connection with every node transformed.

        Cursors, page info, count and facets are carried over unchanged.
        """
        return Connection[Any](
            edges=[
                {"cursor": edge.cursor, "node": func(edge.node)}
                for edge in self.edges
            ],
            page_info=self.page_info,
            total_count=self.total_count,
            facets=self.facets,
        )
