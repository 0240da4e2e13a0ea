"""
Binders that write user metadata into object-storage request headers.

The storage service echoes metadata headers back in a different case than
they were sent:

    >> X-Account-Meta-MyDelete1: foo
    << X-Account-Meta-Mydelete1: foo

Keys are therefore always lower-cased before binding so that a value written
can be read back under the same name. This breaks keys whose lower-case form
is locale sensitive (Turkish dotted/dotless i, for example).
"""

import enum
from collections.abc import Mapping
from typing import TypeVar

from .exceptions import InvalidArgumentError
from .logging import LogEventType, get_logger
from .models import HttpRequest

logger = get_logger(__name__)

R = TypeVar("R", bound=HttpRequest)

REMOVAL_VALUE = "ignored"


class MetadataScope(str, enum.Enum):
    """Header prefix for each level of the storage hierarchy."""

    ACCOUNT = "x-account-meta-"
    CONTAINER = "x-container-meta-"
    OBJECT = "x-object-meta-"


class BindMode(str, enum.Enum):
    SET = "set"
    REMOVE = "remove"


class MetadataHeaderBinder:
    """
    Replace a request's headers with prefixed metadata headers.

    In SET mode every entry becomes ``<prefix><key>: <value>``. In REMOVE mode
    the leading ``x`` of the header name is swapped for ``x-remove`` and the
    value is the placeholder ``ignored``; the server only looks at the name.
    """

    def __init__(self, prefix: str, mode: BindMode | str = BindMode.SET):
        # Keys are compared after lower-casing, so the prefix must be too
        self.prefix = prefix.lower()
        self.mode = BindMode(mode)

    def __repr__(self) -> str:
        return f"MetadataHeaderBinder(prefix={self.prefix!r}, mode={self.mode.value!r})"

    def bind_to_request(self, request: R, metadata: Mapping[str, str]) -> R:
        """
        Return a copy of ``request`` whose headers encode ``metadata``.

        Args:
            request: Request template to copy from
            metadata: Mapping of metadata key to value

        Returns:
            New request of the same class with its header set replaced

        Raises:
            InvalidArgumentError: request is None or metadata is not str -> str
        """
        if request is None:
            raise InvalidArgumentError("request must not be None")
        _check_metadata(metadata)

        headers: list[tuple[str, str]] = []
        for key, value in metadata.items():
            key = key.lower()
            if not key.startswith(self.prefix):
                key = f"{self.prefix}{key}"
            headers.append(self._header(key, value))

        logger.debug(
            "Metadata bound to headers",
            event_type=LogEventType.METADATA_BIND,
            prefix=self.prefix,
            mode=self.mode.value,
            headers=len(headers),
        )
        return request.replace_headers(headers)

    __call__ = bind_to_request

    def _header(self, key: str, value: str) -> tuple[str, str]:
        if self.mode is BindMode.REMOVE:
            return f"x-remove{key[1:]}", REMOVAL_VALUE
        return key, value


def _check_metadata(metadata: object) -> None:
    if not isinstance(metadata, Mapping):
        raise InvalidArgumentError(
            f"metadata must be a mapping of str to str, got {type(metadata).__name__}"
        )
    for key, value in metadata.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise InvalidArgumentError(
                f"metadata must be a mapping of str to str, got {key!r}: {value!r}"
            )


BIND_ACCOUNT_METADATA = MetadataHeaderBinder(MetadataScope.ACCOUNT.value)
BIND_REMOVE_ACCOUNT_METADATA = MetadataHeaderBinder(
    MetadataScope.ACCOUNT.value, BindMode.REMOVE
)
BIND_CONTAINER_METADATA = MetadataHeaderBinder(MetadataScope.CONTAINER.value)
BIND_REMOVE_CONTAINER_METADATA = MetadataHeaderBinder(
    MetadataScope.CONTAINER.value, BindMode.REMOVE
)
BIND_OBJECT_METADATA = MetadataHeaderBinder(MetadataScope.OBJECT.value)
BIND_REMOVE_OBJECT_METADATA = MetadataHeaderBinder(
    MetadataScope.OBJECT.value, BindMode.REMOVE
)

_BINDERS = {
    (MetadataScope.ACCOUNT, BindMode.SET): BIND_ACCOUNT_METADATA,
    (MetadataScope.ACCOUNT, BindMode.REMOVE): BIND_REMOVE_ACCOUNT_METADATA,
    (MetadataScope.CONTAINER, BindMode.SET): BIND_CONTAINER_METADATA,
    (MetadataScope.CONTAINER, BindMode.REMOVE): BIND_REMOVE_CONTAINER_METADATA,
    (MetadataScope.OBJECT, BindMode.SET): BIND_OBJECT_METADATA,
    (MetadataScope.OBJECT, BindMode.REMOVE): BIND_REMOVE_OBJECT_METADATA,
}


def get_metadata_binder(
    scope: MetadataScope, mode: BindMode = BindMode.SET
) -> MetadataHeaderBinder:
    """Return the pre-configured binder for a scope and mode."""
    return _BINDERS[(MetadataScope(scope), BindMode(mode))]
