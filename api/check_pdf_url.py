# api/check_pdf_url.py
import logging
import traceback

from airtable_client import AirtableClient
from errors import ConfigurationError, InvalidInput, StoreUnavailable
from http_utils import JSONRequestHandler
from logging_utils import log_event
from pdf_lookup import lookup_pdf

logger = logging.getLogger("api.check_pdf_url")
logger.setLevel(logging.INFO)


class handler(JSONRequestHandler):
    source = "check_pdf_url"

    def do_POST(self):
        """
        Vercel Python entrypoint for POST /api/check-pdf-url

        Body: { "email": "...", "urlPerfil": "https://linkedin.com/in/...",
                "recordId": "rec..." (optional) }

        -> { success, found, urlPDF, driveKind, recordId }
        found=false is a normal 200 answer (PDF not generated yet).
        """

        try:
            body = self.read_json()
        except InvalidInput as e:
            self.send_json(400, {"success": False, "error": str(e)})
            return

        email = str(body.get("email") or "").strip()
        profile_url = str(body.get("urlPerfil") or "").strip()
        record_id = str(body.get("recordId") or "").strip() or None
        if not email or not profile_url:
            self.send_json(400, {"success": False, "error": "Missing parameters: email and urlPerfil."})
            return

        try:
            client = AirtableClient.from_env()
        except ConfigurationError as e:
            logger.error("Env error: %s", e)
            self.send_json(500, {"success": False, "error": "Server configuration incomplete"})
            return

        try:
            payload = lookup_pdf(client, email, profile_url, record_id=record_id)
            status = 200
            log_event(
                self.source,
                "pdf_found" if payload["found"] else "pdf_missing",
                meta={"email": email, "urlPerfil": profile_url, "recordId": payload["recordId"]},
                client=client,
            )

        except StoreUnavailable as e:
            logger.error("Airtable unreachable: %s", e)
            status = 503
            payload = {"success": False, "error": "Could not reach Airtable"}

        except Exception as e:
            # Full traceback into Vercel logs
            traceback.print_exc()
            status = 500
            payload = {"success": False, "error": str(e) or "Internal error"}
            log_event(self.source, "lookup_error", error=str(e), client=client)

        self.send_json(status, payload)
