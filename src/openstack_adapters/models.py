from collections.abc import Iterable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field


class FrozenSchema(BaseModel):
    model_config = ConfigDict(
        frozen=True,  # Immutable once constructed
        populate_by_name=True,  # Accept both wire aliases and field names
    )


# --- Requests ---


class HttpRequest(FrozenSchema):
    """Outbound request template handed between binders and the transport."""

    method: str
    endpoint: str
    headers: tuple[tuple[str, str], ...] = ()  # Ordered, may repeat names
    params: dict[str, Any] | None = None
    payload: Any = None

    def replace_headers(self, headers: Iterable[tuple[str, str]]) -> "HttpRequest":
        """Return a copy of the same class with the header set replaced."""
        return self.model_copy(update={"headers": tuple(headers)})


# --- Queue domain ---


class Link(FrozenSchema):
    """Pagination link from a queue listing."""

    relation: str = Field(alias="rel")
    href: str


class Message(FrozenSchema):
    """A single queue message."""

    id: str
    ttl: int  # Seconds the message lives after posting
    body: str
    age: int  # Seconds since the message was enqueued


class MessageStream(FrozenSchema):
    """One page of messages plus links to neighbouring pages."""

    messages: tuple[Message, ...] = ()
    links: frozenset[Link] = frozenset()

    @property
    def next_marker(self) -> str | None:
        """Marker to pass when fetching the next page, if there is one."""
        for link in self.links:
            if link.relation == "next":
                return httpx.URL(link.href).params.get("marker")
        return None


# --- Wire shapes returned by the queue service ---


class MessageWithHref(FrozenSchema):
    """Message as listed on the wire, identified by its full href."""

    href: str
    ttl: int
    body: str
    age: int


class PaginatedMessages(FrozenSchema):
    """Decoded message listing before ids are canonicalized."""

    messages: tuple[MessageWithHref, ...] = ()
    links: tuple[Link, ...] = ()


class MessagesCreated(FrozenSchema):
    """Body returned after posting messages."""

    resources: tuple[str, ...] = ()
    partial: bool = False
