# airtable_client.py
"""
Thin Airtable REST client (the record store behind the extension).

Expects, via env or .env:
  AIRTABLE_API_KEY (or AIRTABLE_TOKEN)  personal access token
  AIRTABLE_BASE_ID                      appXXXXXXXXXXXXXX
  AIRTABLE_TABLE_NAME                   table holding users_data rows

Only what the API functions need:
  select(formula, fields, page_size)  -> ONE page of records (<= 100)
  find(record_id)                     -> record or None (404)
  create(fields, typecast=True)       -> created record

Connectivity problems (DNS, refused, timeout) raise StoreUnavailable;
any non-2xx answer raises UpstreamError.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from dotenv import load_dotenv

from errors import ConfigurationError, StoreUnavailable, UpstreamError
from settings import http_timeout

load_dotenv()

logger = logging.getLogger("airtable_client")
logger.setLevel(logging.INFO)

AIRTABLE_API_URL = os.environ.get("AIRTABLE_API_URL", "https://api.airtable.com/v0")
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class AirtableConfig:
    api_key: str
    base_id: str
    table_name: str

    @classmethod
    def from_env(cls, default_table_name: Optional[str] = None) -> "AirtableConfig":
        api_key = os.environ.get("AIRTABLE_API_KEY") or os.environ.get("AIRTABLE_TOKEN")
        base_id = os.environ.get("AIRTABLE_BASE_ID")
        table_name = os.environ.get("AIRTABLE_TABLE_NAME") or default_table_name
        if not api_key or not base_id or not table_name:
            raise ConfigurationError(
                "Incomplete Airtable configuration (API_KEY/TOKEN, BASE_ID, TABLE_NAME)"
            )
        return cls(api_key=api_key, base_id=base_id, table_name=table_name)


def _error_message(resp: requests.Response) -> str:
    """Airtable errors look like {"error": {"type", "message"}} or {"error": "NOT_FOUND"}."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason or "Airtable error"

    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        return err.get("message") or err.get("type") or "Airtable error"
    if isinstance(err, str):
        return err
    return "Airtable error"


class AirtableClient:
    def __init__(
        self,
        config: AirtableConfig,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else http_timeout()

    @classmethod
    def from_env(cls, default_table_name: Optional[str] = None, **kwargs) -> "AirtableClient":
        return cls(AirtableConfig.from_env(default_table_name), **kwargs)

    def for_table(self, table_name: str) -> "AirtableClient":
        """Same credentials/session, different table (e.g. Logs)."""
        config = AirtableConfig(self.config.api_key, self.config.base_id, table_name)
        return AirtableClient(config, session=self.session, timeout=self.timeout)

    # ---------- low level ----------

    def _table_url(self, record_id: Optional[str] = None) -> str:
        url = f"{AIRTABLE_API_URL}/{self.config.base_id}/{quote(self.config.table_name, safe='')}"
        if record_id:
            url = f"{url}/{quote(record_id, safe='')}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            return self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error("Airtable %s %s unreachable: %s", method, url, e)
            raise StoreUnavailable(f"Could not reach Airtable: {e}") from e

    def _check(self, resp: requests.Response) -> Dict[str, Any]:
        if not resp.ok:
            message = _error_message(resp)
            logger.warning("Airtable answered %s: %s", resp.status_code, message)
            raise UpstreamError(resp.status_code, message)
        try:
            return resp.json()
        except ValueError as e:
            logger.warning("Airtable answered %s without a JSON body", resp.status_code)
            raise UpstreamError(resp.status_code, "Airtable returned a non-JSON response") from e

    # ---------- operations ----------

    def select(
        self,
        formula: str,
        fields: Optional[List[str]] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Return a single page of raw records matching filterByFormula."""
        page_size = max(1, min(int(page_size), MAX_PAGE_SIZE))
        params: Dict[str, Any] = {
            "filterByFormula": formula,
            "pageSize": page_size,
            "maxRecords": page_size,
        }
        if fields:
            params["fields[]"] = list(fields)

        data = self._check(self._request("GET", self._table_url(), params=params))
        records = data.get("records") or []
        logger.info("Airtable select returned %d records", len(records))
        return records

    def find(self, record_id: str) -> Optional[Dict[str, Any]]:
        resp = self._request("GET", self._table_url(record_id))
        if resp.status_code == 404:
            return None
        return self._check(resp)

    def create(self, fields: Dict[str, Any], typecast: bool = True) -> Dict[str, Any]:
        body = {"records": [{"fields": fields}], "typecast": typecast}
        data = self._check(self._request("POST", self._table_url(), json=body))
        records = data.get("records") or []
        return records[0] if records else {}
