# api/send_to_hubspot.py
import logging
import traceback

from errors import ConfigurationError, InvalidInput
from http_utils import JSONRequestHandler
from hubspot_client import create_contact, get_private_app_token

logger = logging.getLogger("api.send_to_hubspot")
logger.setLevel(logging.INFO)


class handler(JSONRequestHandler):
    source = "send_to_hubspot"

    def do_POST(self):
        """
        Vercel Python entrypoint for POST /api/send-to-hubspot

        Body: { "nombre": "...", "apellido": "...", "linkedin_url": "..." }
        -> { success: true, id } with the new HubSpot contact id
        """

        try:
            body = self.read_json()
        except InvalidInput as e:
            self.send_json(400, {"success": False, "error": str(e)})
            return

        try:
            token = get_private_app_token()
        except ConfigurationError as e:
            logger.error("Env error: %s", e)
            self.send_json(500, {"success": False, "error": "Server configuration incomplete"})
            return

        try:
            contact = create_contact(
                body.get("nombre"),
                body.get("apellido"),
                body.get("linkedin_url"),
                token=token,
            )
            status = 200
            payload = {"success": True, "id": contact.get("id")}

        except Exception as e:
            traceback.print_exc()
            status = 500
            payload = {
                "success": False,
                "error": "Error creating contact in HubSpot",
                "details": str(e),
            }

        self.send_json(status, payload)
