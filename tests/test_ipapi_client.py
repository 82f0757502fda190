# ==============================================================================
# Tests for the ipapi.co Client
# ==============================================================================
"""
Unit tests for IpApiClient with a mocked requests session.
"""

from unittest.mock import MagicMock

import pytest
import requests

from eventsync.core.errors import GeoLookupError
from eventsync.enrichment import GeoResolver
from eventsync.infrastructure.geo import IpApiClient
from eventsync.utils.config import GeoSettings

IPAPI_BODY = {
    "ip": "8.8.8.8",
    "city": "Mountain View",
    "region": "California",
    "region_code": "CA",
    "country_code": "US",
    "country_name": "United States",
}


def make_client(body=None, exc=None, status_error=None):
    response = MagicMock()
    response.json.return_value = body if body is not None else IPAPI_BODY
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session = MagicMock()
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value = response
    settings = GeoSettings(base_url="http://ipapi.test/", timeout_seconds=2, user_agent="test-agent")
    return IpApiClient(settings, session=session), session


class TestLookup:
    def test_maps_response_fields(self):
        client, _ = make_client()
        assert client.lookup("8.8.8.8") == {
            "country": "United States",
            "country_code": "US",
            "city": "Mountain View",
            "region": "California",
            "region_code": "CA",
        }

    def test_request_shape(self):
        client, session = make_client()
        client.lookup("8.8.8.8")
        session.get.assert_called_once_with(
            "http://ipapi.test/8.8.8.8/json/",
            headers={"User-Agent": "test-agent"},
            timeout=2,
        )

    def test_timeout_raises_lookup_error(self):
        client, _ = make_client(exc=requests.Timeout("read timed out"))
        with pytest.raises(GeoLookupError, match="failed"):
            client.lookup("8.8.8.8")

    def test_http_error_raises_lookup_error(self):
        client, _ = make_client(status_error=requests.HTTPError("429 Too Many Requests"))
        with pytest.raises(GeoLookupError):
            client.lookup("8.8.8.8")

    def test_service_error_flag(self):
        client, _ = make_client(body={"error": True, "reason": "RateLimited"})
        with pytest.raises(GeoLookupError, match="RateLimited"):
            client.lookup("8.8.8.8")

    def test_invalid_json(self):
        client, session = make_client()
        session.get.return_value.json.side_effect = ValueError("no JSON")
        with pytest.raises(GeoLookupError, match="Invalid JSON"):
            client.lookup("8.8.8.8")

    @pytest.mark.parametrize("body", [None, ["8.8.8.8"], "8.8.8.8"])
    def test_non_object_body_raises_lookup_error(self, body):
        client, session = make_client()
        session.get.return_value.json.return_value = body
        with pytest.raises(GeoLookupError, match="JSON object"):
            client.lookup("8.8.8.8")


class TestWithResolver:
    def test_null_body_resolves_to_none(self):
        client, session = make_client()
        session.get.return_value.json.return_value = None
        assert GeoResolver(client).resolve("8.8.8.8") is None
