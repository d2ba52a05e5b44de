# api/hubspot/exchange_token.py
import logging
import traceback

from errors import ConfigurationError, InvalidInput, UpstreamError
from http_utils import JSONRequestHandler
from hubspot_client import exchange_authorization_code, get_oauth_credentials

logger = logging.getLogger("api.exchange_token")
logger.setLevel(logging.INFO)


class handler(JSONRequestHandler):
    source = "exchange_token"

    def do_POST(self):
        """
        POST /api/hubspot/exchange-token

        Body: { "code": "...", "redirect_uri": "..." }
        -> { success: true, tokens: {...HubSpot token JSON as-is...} }

        HubSpot errors are forwarded with HubSpot's own status code.
        """

        try:
            body = self.read_json()
        except InvalidInput as e:
            self.send_json(400, {"success": False, "error": str(e)})
            return

        code = body.get("code")
        redirect_uri = body.get("redirect_uri")
        if not code or not redirect_uri:
            self.send_json(400, {"success": False, "error": "code and redirect_uri are required"})
            return

        try:
            client_id, client_secret, _ = get_oauth_credentials()
        except ConfigurationError as e:
            logger.error("Env error: %s", e)
            self.send_json(500, {"success": False, "error": "Missing credentials on the server"})
            return

        try:
            tokens = exchange_authorization_code(code, redirect_uri, client_id, client_secret)
            status = 200
            payload = {"success": True, "tokens": tokens}

        except UpstreamError as e:
            logger.error("[EXCHANGE FAIL] %s", e.details)
            status = e.status
            payload = {"success": False, "error": e.message, "details": e.details}

        except Exception as e:
            traceback.print_exc()
            status = 500
            payload = {"success": False, "error": str(e) or "Unknown error"}

        self.send_json(status, payload)
