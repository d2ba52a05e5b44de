# api/auth/hubspot_callback.py
import logging
import traceback

from errors import ConfigurationError, UpstreamError
from http_utils import JSONRequestHandler
from hubspot_client import exchange_authorization_code, get_oauth_credentials

logger = logging.getLogger("api.hubspot_callback")
logger.setLevel(logging.INFO)


class handler(JSONRequestHandler):
    allowed_methods = ("GET",)
    source = "hubspot_callback"

    def do_GET(self):
        """
        GET /api/auth/hubspot-callback?code=...

        HubSpot redirects here after the user installs the app. Exchanges the
        code using HUBSPOT_REDIRECT_URI and returns the token fields.
        """

        code = self.query_params().get("code")
        if not code:
            self.send_json(400, {"error": "Missing authorization code"})
            return

        try:
            client_id, client_secret, redirect_uri = get_oauth_credentials(require_redirect_uri=True)
        except ConfigurationError as e:
            logger.error("Env error: %s", e)
            self.send_json(500, {"error": "Server configuration incomplete"})
            return

        try:
            tokens = exchange_authorization_code(code, redirect_uri, client_id, client_secret)
            status = 200
            payload = {
                "access_token": tokens.get("access_token"),
                "refresh_token": tokens.get("refresh_token"),
                "expires_in": tokens.get("expires_in"),
                "user": tokens.get("user_id"),
                "scope": tokens.get("scope"),
            }

        except UpstreamError as e:
            logger.error("Token exchange failed: %s", e.details)
            status = 500
            payload = {"error": "Error exchanging token", "details": e.details}

        except Exception as e:
            traceback.print_exc()
            status = 500
            payload = {"error": "Error exchanging token", "details": str(e)}

        self.send_json(status, payload)
