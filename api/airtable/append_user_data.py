# api/airtable/append_user_data.py
import logging
import traceback
from datetime import datetime, timezone

from airtable_client import AirtableClient
from errors import ConfigurationError, InvalidInput, StoreUnavailable
from http_utils import JSONRequestHandler
from logging_utils import log_event

logger = logging.getLogger("api.append_user_data")
logger.setLevel(logging.INFO)

DEFAULT_TABLE_NAME = "users_data"


class handler(JSONRequestHandler):
    source = "append_user_data"

    def do_POST(self):
        """
        Vercel Python entrypoint for POST /api/airtable/append-user-data

        Body: { "fields": { ...Airtable columns... } }

        - fills "fecha" with the current UTC time if empty
        - creates ONE row (typecast=true)
        -> { success, recordId, fields }
        """

        try:
            body = self.read_json()
        except InvalidInput as e:
            self.send_json(400, {"success": False, "error": str(e)})
            return

        fields = body.get("fields")
        if not isinstance(fields, dict):
            self.send_json(400, {"success": False, "error": "Invalid body. Expected { fields: { ... } }"})
            return

        try:
            client = AirtableClient.from_env(default_table_name=DEFAULT_TABLE_NAME)
        except ConfigurationError as e:
            logger.error("Env error: %s", e)
            self.send_json(500, {"success": False, "error": "Server configuration incomplete"})
            return

        if not fields.get("fecha"):
            fields["fecha"] = datetime.now(timezone.utc).isoformat()

        try:
            record = client.create(fields, typecast=True)
            status = 200
            payload = {
                "success": True,
                "recordId": record.get("id"),
                "fields": record.get("fields") or fields,
            }
            logger.info("Created Airtable record %s", payload["recordId"])
            log_event(self.source, "record_created", meta={"recordId": payload["recordId"]}, client=client)

        except StoreUnavailable as e:
            logger.error("Airtable unreachable: %s", e)
            status = 503
            payload = {"success": False, "error": "Could not reach Airtable"}

        except Exception as e:
            traceback.print_exc()
            status = 500
            payload = {"success": False, "error": str(e) or "Internal error"}

        self.send_json(status, payload)
