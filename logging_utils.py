# logging_utils.py
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from airtable_client import AirtableClient

logger = logging.getLogger("logging_utils")
logger.setLevel(logging.INFO)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_event(
    source: str,
    event: str,
    error: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    client: Optional[AirtableClient] = None,
) -> bool:
    """
    Append a simple event row into the Airtable Logs table.

    source:  'check_pdf_url', 'append_user_data', ...
    event:   'pdf_found', 'pdf_missing', 'record_created', 'lookup_error', etc.
    error:   error message (if any)
    meta:    extra dictionary, will be stored as JSON

    Only active when AIRTABLE_LOGS_TABLE is set. Best effort: a failure to
    log is reported as a warning and never bubbles up to the request.
    Returns True when a row was written.
    """
    table = os.environ.get("AIRTABLE_LOGS_TABLE")
    if not table:
        return False

    meta_json = ""
    if meta:
        try:
            meta_json = json.dumps(meta, ensure_ascii=False)
        except (TypeError, ValueError):
            meta_json = str(meta)

    row = {
        "timestamp": _now_iso(),
        "source": source,
        "event": event,
        "error": error or "",
        "meta_json": meta_json,
    }

    try:
        logs = client.for_table(table) if client else AirtableClient.from_env().for_table(table)
        logs.create(row, typecast=True)
    except Exception as e:
        logger.warning("Could not write %s/%s to Logs table: %s", source, event, e)
        return False
    return True
