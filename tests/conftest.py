import httpx
import pytest

from openstack_adapters import HttpRequest


@pytest.fixture
def post_request():
    """Fixture for a bare metadata update request"""
    return HttpRequest(method="POST", endpoint="/photos")


@pytest.fixture
def listing_body():
    """Fixture for a two-message listing with a next link"""
    return {
        "links": [
            {
                "rel": "next",
                "href": "/v1/queues/q1/messages?marker=6244-244-224783&limit=2",
            }
        ],
        "messages": [
            {
                "href": "/v1/queues/q1/messages/50b68a50d6f5b8c8a7c62b01",
                "ttl": 300,
                "age": 12,
                "body": "hello",
            },
            {
                "href": "/v1/queues/q1/messages/50b68a50d6f5b8c8a7c62b02",
                "ttl": 60,
                "age": 3,
                "body": "world",
            },
        ],
    }


@pytest.fixture
def make_response():
    """Factory fixture building real httpx.Response objects."""

    def _make(status_code: int = 200, json_data=None, content: bytes = b""):
        if json_data is not None:
            return httpx.Response(status_code, json=json_data)
        return httpx.Response(status_code, content=content)

    return _make
