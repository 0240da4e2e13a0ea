# Adapters between OpenStack wire formats and Python values

from .binders import (
    BIND_ACCOUNT_METADATA,
    BIND_CONTAINER_METADATA,
    BIND_OBJECT_METADATA,
    BIND_REMOVE_ACCOUNT_METADATA,
    BIND_REMOVE_CONTAINER_METADATA,
    BIND_REMOVE_OBJECT_METADATA,
    BindMode,
    MetadataHeaderBinder,
    MetadataScope,
    get_metadata_binder,
)
from .exceptions import AdapterError, InvalidArgumentError, MalformedResponseError
from .logging import (
    LogEventType,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)
from .models import (
    HttpRequest,
    Link,
    Message,
    MessagesCreated,
    MessageStream,
    MessageWithHref,
    PaginatedMessages,
)
from .parsers import (
    JsonDecoder,
    MessageIdsParser,
    MessageStreamParser,
    PydanticJsonDecoder,
    parse_message_id,
)

# The HTTP transport lives in openstack_adapters.http_client and is not
# imported here so that the adapters can be used without prometheus/pybreaker

__all__ = [
    # Binders
    "BindMode",
    "MetadataScope",
    "MetadataHeaderBinder",
    "get_metadata_binder",
    "BIND_ACCOUNT_METADATA",
    "BIND_REMOVE_ACCOUNT_METADATA",
    "BIND_CONTAINER_METADATA",
    "BIND_REMOVE_CONTAINER_METADATA",
    "BIND_OBJECT_METADATA",
    "BIND_REMOVE_OBJECT_METADATA",
    # Parsers
    "JsonDecoder",
    "PydanticJsonDecoder",
    "MessageStreamParser",
    "MessageIdsParser",
    "parse_message_id",
    # Models
    "HttpRequest",
    "Link",
    "Message",
    "MessageStream",
    "MessageWithHref",
    "PaginatedMessages",
    "MessagesCreated",
    # Errors
    "AdapterError",
    "InvalidArgumentError",
    "MalformedResponseError",
    # Logging
    "LogEventType",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
]
