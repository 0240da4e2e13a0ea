"""
Response parsers for the queue service.

The service identifies messages by their full href
(``/v1/queues/demo/messages/51db6f78c508f17ddc924357``); callers only ever
need the trailing id.
"""

from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import MalformedResponseError
from .logging import LogEventType, get_logger
from .models import Message, MessagesCreated, MessageStream, PaginatedMessages

logger = get_logger(__name__)

NO_CONTENT = 204

T = TypeVar("T", bound=BaseModel)
T_co = TypeVar("T_co", bound=BaseModel, covariant=True)


class Response(Protocol):
    """The parts of an HTTP response the parsers read (httpx.Response fits)."""

    status_code: int
    content: bytes


class JsonDecoder(Protocol[T_co]):
    def decode(self, content: bytes) -> T_co: ...


class PydanticJsonDecoder:
    """Decode a JSON body straight into a pydantic model."""

    def __init__(self, model: type[T]):
        self.model = model

    def decode(self, content: bytes) -> T:
        try:
            return self.model.model_validate_json(content)
        except ValidationError as e:
            raise MalformedResponseError(
                f"cannot decode {self.model.__name__}: {e.error_count()} error(s)",
                response_body=content,
            ) from e


def parse_message_id(href: str) -> str:
    """
    Strip a message href down to its id.

    /v1/queues/q1/messages/abc123 → abc123
    abc123 → abc123
    """
    return href[href.rfind("/") + 1 :]


class MessageStreamParser:
    """Turn a message listing response into a MessageStream."""

    def __init__(self, decoder: JsonDecoder[PaginatedMessages] | None = None):
        self.decoder = decoder or PydanticJsonDecoder(PaginatedMessages)

    def parse(self, response: Response) -> MessageStream:
        # An empty queue answers 204 with no body
        if response.status_code == NO_CONTENT:
            logger.debug(
                "Empty message stream", event_type=LogEventType.MESSAGES_PARSE
            )
            return MessageStream()

        raw = self.decoder.decode(response.content)
        messages = tuple(
            Message(
                id=parse_message_id(item.href),
                ttl=item.ttl,
                body=item.body,
                age=item.age,
            )
            for item in raw.messages
        )

        logger.debug(
            "Message stream parsed",
            event_type=LogEventType.MESSAGES_PARSE,
            messages=len(messages),
            links=len(raw.links),
        )
        return MessageStream(messages=messages, links=frozenset(raw.links))

    __call__ = parse


class MessageIdsParser:
    """Turn a "messages created" response into the new message ids."""

    def __init__(self, decoder: JsonDecoder[MessagesCreated] | None = None):
        self.decoder = decoder or PydanticJsonDecoder(MessagesCreated)

    def parse(self, response: Response) -> list[str]:
        created = self.decoder.decode(response.content)
        if created.partial:
            logger.warning(
                "Queue accepted only part of the posted messages",
                event_type=LogEventType.MESSAGES_PARSE,
                accepted=len(created.resources),
            )
        return [parse_message_id(href) for href in created.resources]

    __call__ = parse
