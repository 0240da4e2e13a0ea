"""Tests for metadata header binders."""

import pytest

from openstack_adapters import (
    BIND_ACCOUNT_METADATA,
    BIND_CONTAINER_METADATA,
    BIND_OBJECT_METADATA,
    BIND_REMOVE_ACCOUNT_METADATA,
    BIND_REMOVE_CONTAINER_METADATA,
    BIND_REMOVE_OBJECT_METADATA,
    BindMode,
    HttpRequest,
    InvalidArgumentError,
    MetadataHeaderBinder,
    MetadataScope,
    get_metadata_binder,
)


class TaggedRequest(HttpRequest):
    """Request subclass used to check the return type is preserved."""

    tag: str = "custom"


class TestSetMode:
    """Tests for binding metadata values."""

    def test_object_key_is_prefixed_and_lowercased(self, post_request):
        """Test a plain key gets the object prefix in lower case."""
        bound = BIND_OBJECT_METADATA.bind_to_request(post_request, {"My-Key": "v1"})

        assert bound.headers == (("x-object-meta-my-key", "v1"),)

    def test_value_is_not_modified(self, post_request):
        """Test values keep their original case and whitespace."""
        bound = BIND_CONTAINER_METADATA.bind_to_request(
            post_request, {"Owner": " Mixed Case "}
        )

        assert bound.headers == (("x-container-meta-owner", " Mixed Case "),)

    def test_already_prefixed_key_kept(self, post_request):
        """Test a key that already carries the prefix is not prefixed twice."""
        bound = BIND_ACCOUNT_METADATA.bind_to_request(
            post_request, {"X-Account-Meta-Color": "blue"}
        )

        assert bound.headers == (("x-account-meta-color", "blue"),)

    def test_every_header_lowercase_and_prefixed(self, post_request):
        """Test one header per entry, all lower case under the prefix."""
        metadata = {"A": "1", "bEe": "2", "x-object-meta-C": "3", "Déjà": "4"}

        bound = BIND_OBJECT_METADATA.bind_to_request(post_request, metadata)

        assert len(bound.headers) == len(metadata)
        for key, _ in bound.headers:
            assert key == key.lower()
            assert key.startswith("x-object-meta-")

    def test_empty_mapping_clears_headers(self):
        """Test binding nothing yields an empty header set."""
        request = HttpRequest(
            method="POST", endpoint="/photos", headers=(("x-trans-id", "abc"),)
        )

        bound = BIND_OBJECT_METADATA.bind_to_request(request, {})

        assert bound.headers == ()


class TestRemoveMode:
    """Tests for binding metadata removal headers."""

    def test_account_removal_header(self, post_request):
        """Test removal swaps the leading x for x-remove."""
        bound = BIND_REMOVE_ACCOUNT_METADATA.bind_to_request(
            post_request, {"My-Key": "v1"}
        )

        assert bound.headers == (("x-remove-account-meta-my-key", "ignored"),)

    def test_container_removal_header(self, post_request):
        """Test container removal header name."""
        bound = BIND_REMOVE_CONTAINER_METADATA.bind_to_request(
            post_request, {"x-container-meta-Web-Index": "index.html"}
        )

        assert bound.headers == (("x-remove-container-meta-web-index", "ignored"),)

    def test_every_value_ignored(self, post_request):
        """Test each removal header name derives from the prefixed key."""
        metadata = {"One": "1", "two": "2", "x-object-meta-three": "3"}

        bound = BIND_REMOVE_OBJECT_METADATA.bind_to_request(post_request, metadata)

        expected_keys = {
            "x-remove" + f"x-object-meta-{key.lower()}"[1:]
            for key in ("One", "two")
        } | {"x-remove-object-meta-three"}
        assert {key for key, _ in bound.headers} == expected_keys
        assert {value for _, value in bound.headers} == {"ignored"}


class TestRequestHandling:
    """Tests for how binders treat the request template."""

    def test_headers_replaced_not_merged(self):
        """Test existing headers are dropped."""
        request = HttpRequest(
            method="POST",
            endpoint="/photos",
            headers=(("x-object-meta-old", "gone"), ("content-type", "text/plain")),
        )

        bound = BIND_OBJECT_METADATA.bind_to_request(request, {"new": "here"})

        assert bound.headers == (("x-object-meta-new", "here"),)

    def test_rebinding_is_idempotent(self, post_request):
        """Test binding the same mapping twice gives the same header set."""
        metadata = {"Alpha": "1", "Beta": "2"}

        once = BIND_OBJECT_METADATA.bind_to_request(post_request, metadata)
        twice = BIND_OBJECT_METADATA.bind_to_request(once, metadata)

        assert twice.headers == once.headers

    def test_inputs_not_mutated(self, post_request):
        """Test the template and the mapping are left untouched."""
        metadata = {"Key": "value"}

        bound = BIND_OBJECT_METADATA.bind_to_request(post_request, metadata)

        assert post_request.headers == ()
        assert metadata == {"Key": "value"}
        assert bound is not post_request

    def test_request_subclass_preserved(self):
        """Test the returned request has the caller's class and fields."""
        request = TaggedRequest(method="POST", endpoint="/photos", tag="kept")

        bound = BIND_CONTAINER_METADATA.bind_to_request(request, {"k": "v"})

        assert isinstance(bound, TaggedRequest)
        assert bound.tag == "kept"
        assert bound.method == "POST"
        assert bound.endpoint == "/photos"

    def test_binder_is_callable(self, post_request):
        """Test calling the binder is the same as bind_to_request."""
        assert BIND_OBJECT_METADATA(post_request, {"k": "v"}) == (
            BIND_OBJECT_METADATA.bind_to_request(post_request, {"k": "v"})
        )


class TestInvalidArguments:
    """Tests for binder input validation."""

    def test_none_request_rejected(self):
        """Test a missing request fails fast."""
        with pytest.raises(InvalidArgumentError):
            BIND_OBJECT_METADATA.bind_to_request(None, {"k": "v"})

    @pytest.mark.parametrize("metadata", [None, "k=v", [("k", "v")], 42])
    def test_non_mapping_rejected(self, post_request, metadata):
        """Test anything but a mapping is rejected."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            BIND_OBJECT_METADATA.bind_to_request(post_request, metadata)

        assert "mapping of str to str" in str(exc_info.value)

    @pytest.mark.parametrize("metadata", [{"k": 1}, {1: "v"}, {"k": None}])
    def test_non_string_entries_rejected(self, post_request, metadata):
        """Test keys and values must all be strings."""
        with pytest.raises(InvalidArgumentError):
            BIND_OBJECT_METADATA.bind_to_request(post_request, metadata)

    def test_invalid_argument_is_value_error(self, post_request):
        """Test callers catching ValueError also see binder errors."""
        with pytest.raises(ValueError):
            BIND_OBJECT_METADATA.bind_to_request(post_request, {"k": 1})


class TestBinderLookup:
    """Tests for get_metadata_binder."""

    @pytest.mark.parametrize(
        "scope,mode,expected",
        [
            (MetadataScope.ACCOUNT, BindMode.SET, BIND_ACCOUNT_METADATA),
            (MetadataScope.ACCOUNT, BindMode.REMOVE, BIND_REMOVE_ACCOUNT_METADATA),
            (MetadataScope.CONTAINER, BindMode.SET, BIND_CONTAINER_METADATA),
            (MetadataScope.CONTAINER, BindMode.REMOVE, BIND_REMOVE_CONTAINER_METADATA),
            (MetadataScope.OBJECT, BindMode.SET, BIND_OBJECT_METADATA),
            (MetadataScope.OBJECT, BindMode.REMOVE, BIND_REMOVE_OBJECT_METADATA),
        ],
    )
    def test_lookup(self, scope, mode, expected):
        """Test each scope and mode maps to its binder."""
        assert get_metadata_binder(scope, mode) is expected

    def test_lookup_by_value(self):
        """Test scopes and modes can be given as their string values."""
        binder = get_metadata_binder("x-object-meta-", "remove")

        assert binder is BIND_REMOVE_OBJECT_METADATA

    def test_custom_prefix(self, post_request):
        """Test a binder can be built for any prefix."""
        binder = MetadataHeaderBinder("x-versions-meta-")

        bound = binder.bind_to_request(post_request, {"Tag": "t"})

        assert bound.headers == (("x-versions-meta-tag", "t"),)
        assert "x-versions-meta-" in repr(binder)


class TestBinderConstruction:
    """Tests for building a binder directly."""

    def test_mode_given_as_string(self, post_request):
        """Test a string mode behaves like the enum member."""
        binder = MetadataHeaderBinder("x-object-meta-", "remove")

        bound = binder.bind_to_request(post_request, {"K": "v"})

        assert binder.mode is BindMode.REMOVE
        assert bound.headers == (("x-remove-object-meta-k", "ignored"),)

    def test_unknown_mode_rejected(self):
        """Test a mode outside SET/REMOVE is refused."""
        with pytest.raises(ValueError):
            MetadataHeaderBinder("x-object-meta-", "append")

    def test_upper_case_prefix_normalized(self, post_request):
        """Test a mixed-case prefix is matched and emitted in lower case."""
        binder = MetadataHeaderBinder("X-Versions-Meta-")

        bound = binder.bind_to_request(
            post_request, {"X-Versions-Meta-K": "v", "Other": "w"}
        )

        assert binder.prefix == "x-versions-meta-"
        assert bound.headers == (
            ("x-versions-meta-k", "v"),
            ("x-versions-meta-other", "w"),
        )
