"""Interface shared by the hosted REST client and the in-memory store."""

from typing import Any, Mapping, Optional, Protocol, Sequence, Union

Row = dict[str, Any]
Filters = Mapping[str, Any]
Ordering = Sequence[tuple[str, bool]]


class RemoteStore(Protocol):
    """Row-level access to the backend's tables and RPC functions.

    Filters are equality matches. ``order`` is a sequence of
    ``(column, ascending)`` pairs applied left to right.
    """

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        single: bool = False,
    ) -> Union[Row, list[Row]]:
        ...

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        ...

    def update(self, table: str, values: Mapping[str, Any], filters: Filters) -> list[Row]:
        ...

    def delete(self, table: str, filters: Filters) -> list[Row]:
        ...

    def rpc(self, function: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        ...
