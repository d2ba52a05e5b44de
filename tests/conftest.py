"""
Pytest configuration and shared fixtures.
"""

import io
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from profile_link_resolver import CandidateRecord

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No test should see real credentials or write to a Logs table."""
    for name in (
        "AIRTABLE_API_KEY",
        "AIRTABLE_TOKEN",
        "AIRTABLE_BASE_ID",
        "AIRTABLE_TABLE_NAME",
        "AIRTABLE_LOGS_TABLE",
        "HUBSPOT_TOKEN",
        "HUBSPOT_CLIENT_ID",
        "HUBSPOT_CLIENT_SECRET",
        "HUBSPOT_REDIRECT_URI",
        "EXTENSION_IDS",
        "CORS_EXTRA_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def airtable_env(monkeypatch):
    monkeypatch.setenv("AIRTABLE_API_KEY", "patTEST")
    monkeypatch.setenv("AIRTABLE_BASE_ID", "appTEST")
    monkeypatch.setenv("AIRTABLE_TABLE_NAME", "users_data")


@pytest.fixture
def make_record():
    """Factory for CandidateRecord; `age` is minutes before BASE_TIME."""

    def _make(
        rec_id: str,
        url: str = "",
        link: Optional[str] = None,
        email: str = "ana@example.com",
        age: Optional[int] = 0,
    ) -> CandidateRecord:
        created = None if age is None else BASE_TIME - timedelta(minutes=age)
        return CandidateRecord(
            id=rec_id,
            owner_email=email,
            profile_url=url,
            document_link=link,
            created_at=created,
        )

    return _make


def airtable_record(
    rec_id: str,
    email: str = "ana@example.com",
    url: str = "",
    link: Optional[str] = None,
    created: str = "2024-05-01T12:00:00.000Z",
) -> Dict[str, Any]:
    """Raw Airtable record JSON as returned by the REST API."""
    fields: Dict[str, Any] = {"UsuarioEmail": email, "URLPerfil": url}
    if link is not None:
        fields["URL_informePDF"] = link
    return {"id": rec_id, "createdTime": created, "fields": fields}


@pytest.fixture
def raw_record():
    return airtable_record


class FakeAirtableClient:
    """In-memory stand-in for AirtableClient."""

    def __init__(
        self,
        records: Optional[List[Dict[str, Any]]] = None,
        by_id: Optional[Dict[str, Dict[str, Any]]] = None,
        select_error: Optional[Exception] = None,
        find_error: Optional[Exception] = None,
    ):
        self.records = records or []
        self.by_id = by_id or {}
        self.select_error = select_error
        self.find_error = find_error
        self.selects: List[Dict[str, Any]] = []
        self.finds: List[str] = []
        self.created: List[Dict[str, Any]] = []

    def select(self, formula, fields=None, page_size=100):
        self.selects.append({"formula": formula, "fields": fields, "page_size": page_size})
        if self.select_error:
            raise self.select_error
        return list(self.records)

    def find(self, record_id):
        self.finds.append(record_id)
        if self.find_error:
            raise self.find_error
        return self.by_id.get(record_id)

    def create(self, fields, typecast=True):
        self.created.append({"fields": dict(fields), "typecast": typecast})
        return {"id": f"recNEW{len(self.created)}", "fields": dict(fields)}

    def for_table(self, table_name):
        return self


@pytest.fixture
def fake_airtable():
    return FakeAirtableClient


# ---------- Driving BaseHTTPRequestHandler functions in-process ----------

class _FakeSocket:
    def __init__(self, raw: bytes):
        self._rfile = io.BytesIO(raw)
        self.sent = bytearray()

    def makefile(self, mode, *args, **kwargs):
        return self._rfile

    def sendall(self, data):
        self.sent.extend(data)

    def settimeout(self, timeout):
        pass

    def setsockopt(self, *args):
        pass


@dataclass
class HandlerResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8")) if self.body else None


def _parse_response(raw: bytes) -> HandlerResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return HandlerResponse(status=status, headers=headers, body=body)


@pytest.fixture
def call_handler():
    """Run a `handler` class against one HTTP request and return the response."""

    def _call(
        handler_cls,
        method: str,
        path: str = "/",
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HandlerResponse:
        if body is None:
            data = b""
        elif isinstance(body, bytes):
            data = body
        else:
            data = json.dumps(body).encode("utf-8")

        all_headers = {"Host": "localhost", "Content-Length": str(len(data))}
        if data:
            all_headers["Content-Type"] = "application/json"
        all_headers.update(headers or {})

        request_lines = [f"{method} {path} HTTP/1.1"]
        request_lines += [f"{k}: {v}" for k, v in all_headers.items()]
        raw = ("\r\n".join(request_lines) + "\r\n\r\n").encode("iso-8859-1") + data

        sock = _FakeSocket(raw)
        handler_cls(sock, ("127.0.0.1", 0), None)
        return _parse_response(bytes(sock.sent))

    return _call
