"""Errors raised by the request binders and response parsers."""


class AdapterError(Exception):
    """Base exception for binder and parser errors."""

    pass


class InvalidArgumentError(AdapterError, ValueError):
    """Input to a binder is missing or has the wrong shape."""

    pass


class MalformedResponseError(AdapterError):
    """Response body could not be decoded into the expected shape."""

    def __init__(self, detail: str, response_body: bytes | None = None):
        self.detail = detail
        self.response_body = response_body
        super().__init__(f"Malformed response: {detail}")
