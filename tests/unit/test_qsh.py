"""
Unit tests for query string hash canonicalisation.
"""

import pytest

from jiralink.auth.qsh import (
    canonical_request,
    canonicalize_query,
    normalize_method,
    normalize_path,
    query_string_hash,
    split_url,
)
from jiralink.core.exceptions import InvalidInput


class TestCanonicalQuery:
    """Test query canonicalisation."""

    def test_pairs_sorted_by_key(self):
        """Keys come out in sorted order regardless of input order."""
        assert canonicalize_query("z=1&a=2&m=3") == "a=2&m=3&z=1"

    def test_leading_question_mark_ignored(self):
        """A leading ? is not part of the query."""
        assert canonicalize_query("?expand=description") == "expand=description"

    def test_jwt_parameter_dropped(self):
        """The token itself is never part of its own hash."""
        assert canonicalize_query("jwt=abc.def.ghi&expand=names") == "expand=names"

    def test_empty_query(self):
        """No query gives an empty canonical string."""
        assert canonicalize_query(None) == ""
        assert canonicalize_query("") == ""
        assert canonicalize_query({}) == ""

    def test_reserved_characters_encoded(self):
        """Separators inside keys and values are percent-encoded."""
        assert canonicalize_query({"jql": "project = ABC & x"}) == "jql=project%20%3D%20ABC%20%26%20x"

    def test_repeated_keys_sorted_by_value(self):
        """Repeated keys stay separate pairs ordered by value."""
        assert canonicalize_query("b=2&a=y&a=x") == "a=x&a=y&b=2"
        assert canonicalize_query({"a": ["y", "x"]}) == "a=x&a=y"

    def test_blank_values_kept(self):
        """A key with no value still takes part in the hash."""
        assert canonicalize_query("flag=&a=1") == "a=1&flag="

    def test_idempotent(self):
        """Canonicalising a canonical query changes nothing."""
        once = canonicalize_query("q=a b&x=%26&y=c%2Bd&jwt=t")
        assert canonicalize_query(once) == once

    def test_mapping_and_string_agree(self):
        """String, mapping and pair inputs give the same canonical form."""
        expected = canonicalize_query("startAt=0&maxResults=50")
        assert canonicalize_query({"maxResults": 50, "startAt": 0}) == expected
        assert canonicalize_query([("startAt", "0"), ("maxResults", "50")]) == expected


class TestNormalizePath:
    """Test path and method normalisation."""

    def test_trailing_slash_removed(self):
        assert normalize_path("/rest/api/3/issue/") == "/rest/api/3/issue"

    def test_root_path(self):
        assert normalize_path("") == "/"
        assert normalize_path("/") == "/"

    def test_duplicate_slashes_collapsed(self):
        assert normalize_path("//rest//api///3") == "/rest/api/3"

    def test_leading_slash_added(self):
        assert normalize_path("rest/api/3/myself") == "/rest/api/3/myself"

    def test_query_not_part_of_path(self):
        assert normalize_path("/rest/api/3/search?jql=x") == "/rest/api/3/search"

    def test_ampersand_escaped(self):
        assert normalize_path("/a&b") == "/a%26b"

    def test_base_url_context_path_stripped(self):
        """Paths are relative to the product base URL."""
        assert normalize_path("/wiki/rest/api/space", "https://example.atlassian.net/wiki") == "/rest/api/space"

    def test_base_url_without_context_path(self):
        assert normalize_path("/rest/api/3/issue", "https://example.atlassian.net") == "/rest/api/3/issue"

    def test_full_url_uses_its_path(self):
        assert normalize_path("https://example.atlassian.net/rest/api/3/issue?x=1") == "/rest/api/3/issue"

    def test_method_upper_cased(self):
        assert normalize_method("get") == "GET"

    def test_unknown_method_rejected(self):
        with pytest.raises(InvalidInput):
            normalize_method("FETCH")

    def test_missing_path_rejected(self):
        with pytest.raises(InvalidInput):
            normalize_path(None)


class TestQueryStringHash:
    """Test the canonical request and its hash."""

    def test_canonical_request_shape(self):
        assert (
            canonical_request("get", "/rest/api/3/project/search/", "expand=description")
            == "GET&/rest/api/3/project/search&expand=description"
        )

    def test_known_hash(self):
        """Hash is the lowercase hex SHA-256 of the canonical request."""
        assert (
            query_string_hash("GET", "/rest/api/3/project/search", "expand=description")
            == "e3fdc5ce9f3dda02493b8b7ec0d05be6be0379d1f6c2a230340c1964ba593500"
        )

    def test_known_hash_with_encoding(self):
        assert (
            query_string_hash("GET", "/rest/api/latest/issue/ABC-1", {"b": "x y", "a": "1"})
            == "635e55422caa8528c9181efcf127a089ec6a9ce8b629ed2397298dc025439727"
        )

    def test_equivalent_requests_hash_equal(self):
        """Parameter order, trailing slashes and the jwt param do not matter."""
        a = query_string_hash("GET", "/rest/api/3/search/", "maxResults=5&jql=x&jwt=abc")
        b = query_string_hash("get", "/rest/api/3/search", "jql=x&maxResults=5")
        assert a == b

    def test_different_requests_hash_differently(self):
        assert query_string_hash("GET", "/a") != query_string_hash("POST", "/a")
        assert query_string_hash("GET", "/a", "x=1") != query_string_hash("GET", "/a", "x=2")

    def test_split_url(self):
        assert split_url("/rest/api/3/project/search?expand=description") == (
            "/rest/api/3/project/search",
            "expand=description",
        )
        assert split_url("/rest/api/3/myself") == ("/rest/api/3/myself", "")
