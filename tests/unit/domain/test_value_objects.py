"""Unit tests for domain value objects."""

import pytest

from careunity.domain.value_objects import HttpMethod, RequestUrl, validate_user_id


class TestHttpMethod:
    """Tests for HttpMethod parsing."""

    @pytest.mark.parametrize("value", ["PATCH", "patch", "Patch"])
    def test_parse_is_case_insensitive(self, value: str) -> None:
        """Any letter case parses to the canonical method."""
        assert HttpMethod.parse(value) is HttpMethod.PATCH

    def test_parse_passes_through_enum(self) -> None:
        """An HttpMethod is returned unchanged."""
        assert HttpMethod.parse(HttpMethod.DELETE) is HttpMethod.DELETE

    @pytest.mark.parametrize("value", ["HEAD", "OPTIONS", "FETCH", ""])
    def test_parse_rejects_unsupported_methods(self, value: str) -> None:
        """Methods outside GET/POST/PUT/PATCH/DELETE are rejected."""
        with pytest.raises(ValueError, match="Unsupported method"):
            HttpMethod.parse(value)

    def test_parse_rejects_non_strings(self) -> None:
        """Non-string input is rejected with the type name."""
        with pytest.raises(ValueError, match="int"):
            HttpMethod.parse(42)  # type: ignore[arg-type]


class TestRequestUrl:
    """Tests for RequestUrl validation."""

    @pytest.mark.parametrize(
        "url",
        [
            "/api/service-users/5",
            "/api/care-plans?active=1",
            "http://localhost:5000/api/visits",
            "https://care.example.org/api/visits/7",
        ],
    )
    def test_accepts_valid_urls(self, url: str) -> None:
        """Root-relative paths and absolute http(s) URLs are accepted."""
        assert str(RequestUrl(url)) == url

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "api/service-users",
            "//evil.example.org/api",
            "ftp://files.example.org/a",
            "http:///no-host",
            "/api/with space",
            "/api/tab\there",
            "http://care.test:abc/api/x",
            "http://care.test:99999/api/x",
        ],
    )
    def test_rejects_invalid_urls(self, url: str) -> None:
        """Malformed targets raise ValueError."""
        with pytest.raises(ValueError):
            RequestUrl(url)

    def test_bad_port_names_the_url(self) -> None:
        with pytest.raises(ValueError, match="Invalid url 'http://care.test:abc/api/x'"):
            RequestUrl("http://care.test:abc/api/x")

    def test_is_relative(self) -> None:
        """is_relative distinguishes paths from absolute URLs."""
        assert RequestUrl("/api/visits").is_relative
        assert not RequestUrl("https://care.example.org/api/visits").is_relative


class TestValidateUserId:
    """Tests for validate_user_id."""

    def test_returns_positive_int(self) -> None:
        assert validate_user_id(7) == 7

    @pytest.mark.parametrize("value", [0, -1, "1", 1.0, None, True])
    def test_rejects_non_positive_or_non_int(self, value: object) -> None:
        """Only positive ints are user ids; bools do not count."""
        with pytest.raises(ValueError, match="userId"):
            validate_user_id(value)
