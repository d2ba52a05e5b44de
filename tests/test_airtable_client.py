"""
Tests for the Airtable REST client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from airtable_client import AirtableClient, AirtableConfig
from errors import ConfigurationError, StoreUnavailable, UpstreamError
from pdf_lookup import lookup_pdf


def _response(status=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = text
    resp.reason = "reason"
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def config():
    return AirtableConfig(api_key="patTEST", base_id="appBASE", table_name="users data")


class TestAirtableConfig:
    """Loading credentials from the environment."""

    def test_missing_env_raises(self):
        with pytest.raises(ConfigurationError):
            AirtableConfig.from_env()

    def test_from_env(self, airtable_env):
        cfg = AirtableConfig.from_env()
        assert cfg.api_key == "patTEST"
        assert cfg.base_id == "appTEST"
        assert cfg.table_name == "users_data"

    def test_token_alias_and_default_table(self, monkeypatch):
        monkeypatch.setenv("AIRTABLE_TOKEN", "patALIAS")
        monkeypatch.setenv("AIRTABLE_BASE_ID", "appTEST")
        cfg = AirtableConfig.from_env(default_table_name="users_data")
        assert cfg.api_key == "patALIAS"
        assert cfg.table_name == "users_data"

    def test_table_required_without_default(self, monkeypatch):
        monkeypatch.setenv("AIRTABLE_API_KEY", "patTEST")
        monkeypatch.setenv("AIRTABLE_BASE_ID", "appTEST")
        with pytest.raises(ConfigurationError):
            AirtableConfig.from_env()


class TestAirtableClient:
    """HTTP behaviour against a mocked requests session."""

    def test_select_single_page(self, config):
        session = MagicMock()
        session.request.return_value = _response(payload={"records": [{"id": "rec1"}], "offset": "next"})
        client = AirtableClient(config, session=session, timeout=5)

        records = client.select("TRUE()", fields=["A", "B"], page_size=500)

        assert records == [{"id": "rec1"}]
        assert session.request.call_count == 1
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "GET"
        assert url.endswith("/appBASE/users%20data")
        assert kwargs["params"]["pageSize"] == 100
        assert kwargs["params"]["maxRecords"] == 100
        assert kwargs["params"]["fields[]"] == ["A", "B"]
        assert kwargs["headers"]["Authorization"] == "Bearer patTEST"
        assert kwargs["timeout"] == 5

    def test_find_not_found_returns_none(self, config):
        session = MagicMock()
        session.request.return_value = _response(404, {"error": "NOT_FOUND"})
        client = AirtableClient(config, session=session)
        assert client.find("recMISSING") is None

    def test_find_returns_record(self, config):
        session = MagicMock()
        session.request.return_value = _response(payload={"id": "rec1", "fields": {}})
        client = AirtableClient(config, session=session)
        assert client.find("rec1")["id"] == "rec1"
        assert session.request.call_args.args[1].endswith("/users%20data/rec1")

    def test_create_with_typecast(self, config):
        session = MagicMock()
        session.request.return_value = _response(payload={"records": [{"id": "recNEW", "fields": {"a": 1}}]})
        client = AirtableClient(config, session=session)

        record = client.create({"a": 1})

        assert record["id"] == "recNEW"
        body = session.request.call_args.kwargs["json"]
        assert body == {"records": [{"fields": {"a": 1}}], "typecast": True}

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ConnectionError("getaddrinfo ENOTFOUND"),
            requests.exceptions.Timeout("read timed out"),
        ],
    )
    def test_connectivity_errors_raise_store_unavailable(self, config, error):
        session = MagicMock()
        session.request.side_effect = error
        client = AirtableClient(config, session=session)
        with pytest.raises(StoreUnavailable):
            client.select("TRUE()")

    def test_error_status_raises_upstream_error(self, config):
        session = MagicMock()
        session.request.return_value = _response(
            422, {"error": {"type": "INVALID_FILTER_BY_FORMULA", "message": "Bad formula"}}
        )
        client = AirtableClient(config, session=session)
        with pytest.raises(UpstreamError) as exc:
            client.select("OR(")
        assert exc.value.status == 422
        assert exc.value.message == "Bad formula"

    def test_error_without_json_body(self, config):
        session = MagicMock()
        session.request.return_value = _response(502, None, text="Bad Gateway")
        client = AirtableClient(config, session=session)
        with pytest.raises(UpstreamError) as exc:
            client.create({})
        assert exc.value.message == "Bad Gateway"

    def test_for_table_shares_session(self, config):
        session = MagicMock()
        client = AirtableClient(config, session=session)
        logs = client.for_table("Logs")
        assert logs.session is session
        assert logs.config.table_name == "Logs"
        assert logs.config.base_id == "appBASE"

    def test_non_json_success_raises_upstream_error(self, config):
        session = MagicMock()
        session.request.return_value = _response(200, None, text="<html>maintenance</html>")
        client = AirtableClient(config, session=session)
        with pytest.raises(UpstreamError) as exc:
            client.find("rec1")
        assert exc.value.status == 200

    def test_pinned_lookup_with_non_json_body_degrades(self, config, raw_record):
        best = raw_record("best", url="https://www.linkedin.com/in/ana", link="https://site.com/best.pdf")
        session = MagicMock()
        session.request.side_effect = [
            _response(payload={"records": [best]}),
            _response(200, None, text="<html>maintenance</html>"),
        ]
        client = AirtableClient(config, session=session)

        payload = lookup_pdf(client, "ana@example.com", "https://www.linkedin.com/in/ana", record_id="recPIN")

        assert payload["found"] is True
        assert payload["recordId"] == "best"
