"""Tests for TrainerRoad cookie bundle handling."""

from trainerroad_bridge.integrations.cookies import (
    SessionBundle,
    deserialize,
    is_authenticated,
    merge,
    parse,
    serialize,
)


class TestParse:
    """Tests for Set-Cookie parsing."""

    def test_drops_attributes(self):
        """Only the name=value before the first semicolon is kept."""
        headers = [
            "SharedTrainerRoadAuth=abc123; path=/; secure; HttpOnly",
            "ASP.NET_SessionId=xyz; Path=/; Max-Age=3600; SameSite=Lax",
        ]

        assert parse(headers) == [
            ("SharedTrainerRoadAuth", "abc123"),
            ("ASP.NET_SessionId", "xyz"),
        ]

    def test_value_may_contain_equals(self):
        """Base64 padding in values survives parsing."""
        assert parse(["token=YWJj==; path=/"]) == [("token", "YWJj==")]

    def test_skips_empty_name_or_value(self):
        """Deletion cookies and malformed entries are ignored."""
        headers = ["gone=; expires=Thu, 01 Jan 1970 00:00:00 GMT", "=orphan", "novalue", ""]

        assert parse(headers) == []

    def test_parse_then_serialize_round_trips_pairs(self):
        """parse followed by serialize keeps pairs in order without attributes."""
        headers = ["a=1; Path=/", "b=2; HttpOnly", "c=3"]

        assert serialize(parse(headers)) == "a=1; b=2; c=3"


class TestMerge:
    """Tests for merging cookie lists."""

    def test_replaces_same_name_in_place(self):
        existing = [("a", "1"), ("b", "2")]
        incoming = [("a", "9")]

        assert merge(existing, incoming) == [("a", "9"), ("b", "2")]

    def test_appends_new_names_in_order(self):
        existing = [("a", "1")]
        incoming = [("c", "3"), ("b", "2")]

        assert merge(existing, incoming) == [("a", "1"), ("c", "3"), ("b", "2")]

    def test_merge_is_idempotent(self):
        """merge(merge(a, b), b) == merge(a, b)."""
        a = [("x", "1"), ("y", "2")]
        b = [("y", "20"), ("z", "30")]

        once = merge(a, b)
        assert merge(once, b) == once

    def test_does_not_mutate_inputs(self):
        existing = [("a", "1")]
        merge(existing, [("a", "2")])

        assert existing == [("a", "1")]


class TestIsAuthenticated:
    """Tests for the marker cookie check."""

    def test_empty_bundle_is_not_authenticated(self):
        assert is_authenticated([]) is False

    def test_unrelated_cookies_are_not_authenticated(self):
        assert is_authenticated([("dummy_session", "test_value"), ("authenticated", "true")]) is False

    def test_marker_present_regardless_of_value(self):
        assert is_authenticated([("SharedTrainerRoadAuth", "x")]) is True

    def test_custom_marker(self):
        assert is_authenticated([("OtherAuth", "1")], marker="OtherAuth") is True


class TestSessionBundle:
    """Tests for the immutable bundle value."""

    def test_from_string_reads_stored_form(self):
        bundle = SessionBundle.from_string("SharedTrainerRoadAuth=abc; ASP.NET_SessionId=s1")

        assert bundle.names == ["SharedTrainerRoadAuth", "ASP.NET_SessionId"]
        assert bundle.get("ASP.NET_SessionId") == "s1"
        assert bundle.is_authenticated()

    def test_placeholder_bundle_is_not_authenticated(self):
        bundle = SessionBundle.from_string("dummy_session=test_value; authenticated=true")

        assert len(bundle) == 2
        assert not bundle.is_authenticated()

    def test_merged_with_returns_new_bundle(self):
        original = SessionBundle.from_set_cookie(["a=1; path=/"])
        updated = original.merged_with([("a", "2"), ("b", "3")])

        assert original.serialize() == "a=1"
        assert updated.serialize() == "a=2; b=3"

    def test_deserialize_ignores_blank_fragments(self):
        assert deserialize("a=1; ; b=2;") == [("a", "1"), ("b", "2")]
        assert deserialize(None) == []

    def test_repr_hides_cookie_values(self):
        bundle = SessionBundle.from_string("SharedTrainerRoadAuth=secret-value")

        assert "secret-value" not in repr(bundle)
