"""Backend capability protocols and the read-only capability table."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Protocol, TypedDict, runtime_checkable

from .errors import UnknownResourceError


class PageQuery(TypedDict, total=False):
    """Query forwarded to ``fetch_page``; only fields the caller supplied are present.

    Fields beyond these three are backend-specific and forwarded untouched.
    """

    filter: dict[str, Any]
    limit: int
    cursor: str


@runtime_checkable
class SupportsFetchOne(Protocol):
    async def fetch_one(self, id: str) -> Any:
        """Return the record with the given identifier."""
        ...


@runtime_checkable
class SupportsFetchPage(Protocol):
    async def fetch_page(self, query: PageQuery) -> Any:
        """Return an ordered sequence of records.

        ``query["cursor"]`` is the id of the last record of the previous page.
        """
        ...


class CapabilityTable(Mapping[str, object]):
    """Mapping from resource type name to the object serving it.

    Built once at startup and shared by every connection; there is no
    mutation API.
    """

    def __init__(self, capabilities: Mapping[str, object]) -> None:
        self._capabilities: Mapping[str, object] = MappingProxyType(dict(capabilities))

    def resolve(self, resource: str) -> object:
        try:
            return self._capabilities[resource]
        except KeyError:
            raise UnknownResourceError(resource, reason="no backend capability registered") from None

    def __getitem__(self, resource: str) -> object:
        return self._capabilities[resource]

    def __iter__(self) -> Iterator[str]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)
