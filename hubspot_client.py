# hubspot_client.py
"""
HubSpot calls used by the extension backend.

- create_contact(): CRM v3 contact with firstname / lastname / hs_linkedin_url,
  authenticated with a private-app token (HUBSPOT_TOKEN).
- exchange_authorization_code(): OAuth "authorization_code" grant against
  /oauth/v1/token (HUBSPOT_CLIENT_ID / HUBSPOT_CLIENT_SECRET).

Both are plain passthroughs: non-2xx answers raise UpstreamError carrying
HubSpot's status and JSON body so the API function can forward them.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import requests
from dotenv import load_dotenv

from errors import ConfigurationError, UpstreamError
from settings import http_timeout

load_dotenv()

logger = logging.getLogger("hubspot_client")
logger.setLevel(logging.INFO)

HUBSPOT_API_URL = os.environ.get("HUBSPOT_API_URL", "https://api.hubapi.com")
CONTACTS_PATH = "/crm/v3/objects/contacts"
TOKEN_PATH = "/oauth/v1/token"


# ---------- Credentials ----------

def get_private_app_token() -> str:
    token = os.environ.get("HUBSPOT_TOKEN")
    if not token:
        raise ConfigurationError("Missing HUBSPOT_TOKEN environment variable")
    return token


def get_oauth_credentials(require_redirect_uri: bool = False) -> Tuple[str, str, Optional[str]]:
    """Return (client_id, client_secret, redirect_uri) from env."""
    client_id = os.environ.get("HUBSPOT_CLIENT_ID")
    client_secret = os.environ.get("HUBSPOT_CLIENT_SECRET")
    redirect_uri = os.environ.get("HUBSPOT_REDIRECT_URI")

    if not client_id or not client_secret:
        raise ConfigurationError("Missing HUBSPOT_CLIENT_ID / HUBSPOT_CLIENT_SECRET")
    if require_redirect_uri and not redirect_uri:
        raise ConfigurationError("Missing HUBSPOT_REDIRECT_URI")
    return client_id, client_secret, redirect_uri


# ---------- Helpers ----------

def _json_or_empty(resp: requests.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


def _raise_for_status(resp: requests.Response, default_message: str) -> Dict[str, Any]:
    data = _json_or_empty(resp)
    if not resp.ok:
        message = data.get("message") or default_message
        logger.error("HubSpot answered %s: %s", resp.status_code, data or resp.text)
        raise UpstreamError(resp.status_code, message, details=data or resp.text)
    return data


# ---------- Calls ----------

def create_contact(
    firstname: Optional[str],
    lastname: Optional[str],
    linkedin_url: Optional[str],
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    token = token or get_private_app_token()
    http = session or requests

    resp = http.post(
        f"{HUBSPOT_API_URL}{CONTACTS_PATH}",
        json={
            "properties": {
                "firstname": firstname,
                "lastname": lastname,
                "hs_linkedin_url": linkedin_url,
            }
        },
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        },
        timeout=http_timeout(),
    )
    data = _raise_for_status(resp, "Could not create HubSpot contact")
    logger.info("Created HubSpot contact %s", data.get("id"))
    return data


def exchange_authorization_code(
    code: str,
    redirect_uri: str,
    client_id: str,
    client_secret: str,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    """POST the authorization code and return HubSpot's token JSON as-is."""
    http = session or requests

    resp = http.post(
        f"{HUBSPOT_API_URL}{TOKEN_PATH}",
        data={
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "code": code,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=http_timeout(),
    )
    return _raise_for_status(resp, "Token exchange failed")
