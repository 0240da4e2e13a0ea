"""Tests for request and queue models."""

from openstack_adapters import HttpRequest, Link, MessageStream


class TestHttpRequest:
    """Tests for HttpRequest."""

    def test_replace_headers_returns_new_request(self):
        """Test replace_headers copies instead of mutating."""
        original = HttpRequest(method="POST", endpoint="/c", headers=(("a", "1"),))

        replaced = original.replace_headers([("b", "2")])

        assert replaced.headers == (("b", "2"),)
        assert original.headers == (("a", "1"),)

    def test_repeated_header_names_kept(self):
        """Test the header set keeps duplicate names in order."""
        request = HttpRequest(method="GET", endpoint="/c")

        replaced = request.replace_headers([("x-a", "1"), ("x-a", "2")])

        assert replaced.headers == (("x-a", "1"), ("x-a", "2"))


class TestMessageStream:
    """Tests for MessageStream and Link."""

    def test_link_accepts_wire_and_field_names(self):
        """Test Link is populated from rel or relation."""
        assert Link(rel="next", href="/x") == Link(relation="next", href="/x")
        assert Link.model_validate({"rel": "next", "href": "/x"}).relation == "next"

    def test_next_marker_from_absolute_href(self):
        """Test marker is read from a fully qualified next link."""
        stream = MessageStream(
            links=frozenset(
                {Link(rel="next", href="http://q:8888/v1/queues/q1/messages?marker=42")}
            )
        )

        assert stream.next_marker == "42"

    def test_empty_stream_has_no_marker(self):
        """Test an empty stream has nothing to page to."""
        assert MessageStream().next_marker is None
