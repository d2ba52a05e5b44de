# pdf_lookup.py
"""
Find the generated PDF for (email, LinkedIn profile URL) in Airtable.

- ONE broad query: rows of that email OR rows whose URLPerfil contains the
  profile URL (with / without trailing slash) or the LinkedIn handle.
  SEARCH() is case-insensitive in Airtable.
- Optional recordId: if the extension remembers the row it created, that row
  wins. If it is not in the page we fetch it by id; if that fetch fails we
  just carry on with the normal matching.
- Matching / ranking lives in profile_link_resolver.resolve().

Returns the JSON payload for /api/check-pdf-url.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from airtable_client import MAX_PAGE_SIZE, AirtableClient
from errors import StoreUnavailable, UpstreamError
from profile_link_resolver import (
    EMAIL_FIELD,
    PDF_URL_FIELD,
    PROFILE_URL_FIELD,
    CandidateRecord,
    extract_linkedin_handle,
    normalize_profile_url,
    resolve,
)

logger = logging.getLogger("pdf_lookup")
logger.setLevel(logging.INFO)

LOOKUP_FIELDS = [EMAIL_FIELD, PROFILE_URL_FIELD, PDF_URL_FIELD]
NOT_AVAILABLE_MESSAGE = "PDF is not available yet"


def escape_formula_string(value: Any) -> str:
    """Escape a value for use inside a single-quoted Airtable formula string."""
    return str(value or "").replace("\\", "\\\\").replace("'", "\\'")


def build_lookup_formula(email: str, profile_url: str) -> str:
    raw_no_query = str(profile_url or "").split("?")[0].strip()
    raw_no_trailing = raw_no_query.rstrip("/")
    raw_with_slash = raw_no_trailing + "/"
    handle = extract_linkedin_handle(profile_url)

    clauses = [
        f"{{{EMAIL_FIELD}}}='{escape_formula_string(email)}'",
        f"SEARCH('{escape_formula_string(raw_no_trailing)}',{{{PROFILE_URL_FIELD}}})>0",
        f"SEARCH('{escape_formula_string(raw_with_slash)}',{{{PROFILE_URL_FIELD}}})>0",
        (
            f"SEARCH('{escape_formula_string(handle)}',{{{PROFILE_URL_FIELD}}})>0"
            if handle
            else "FALSE()"
        ),
    ]
    return "OR(" + ", ".join(clauses) + ")"


def fetch_candidates(client: AirtableClient, email: str, profile_url: str) -> List[CandidateRecord]:
    records = client.select(
        build_lookup_formula(email, profile_url),
        fields=LOOKUP_FIELDS,
        page_size=MAX_PAGE_SIZE,
    )
    return [CandidateRecord.from_airtable(r) for r in records]


def fetch_pinned_record(client: AirtableClient, record_id: str) -> Optional[CandidateRecord]:
    """Lookup by id; any failure degrades to None instead of failing the request."""
    try:
        raw = client.find(record_id)
    except (StoreUnavailable, UpstreamError) as e:
        logger.warning("Lookup of record %s failed, falling back to matching: %s", record_id, e)
        return None

    if raw is None:
        logger.info("Record %s not found, falling back to matching", record_id)
        return None
    return CandidateRecord.from_airtable(raw)


def not_found_payload() -> Dict[str, Any]:
    return {
        "success": True,
        "found": False,
        "urlPDF": None,
        "driveKind": None,
        "recordId": None,
        "message": NOT_AVAILABLE_MESSAGE,
    }


def lookup_pdf(
    client: AirtableClient,
    email: str,
    profile_url: str,
    record_id: Optional[str] = None,
) -> Dict[str, Any]:
    candidates = fetch_candidates(client, email, profile_url)

    if record_id and not any(c.id == record_id for c in candidates):
        pinned = fetch_pinned_record(client, record_id)
        if pinned is not None:
            candidates.append(pinned)

    selection = resolve(candidates, email, profile_url, record_id=record_id)
    if selection is None:
        logger.info(
            "No PDF link for %s | %s (%d candidates)",
            email,
            normalize_profile_url(profile_url),
            len(candidates),
        )
        return not_found_payload()

    logger.info(
        "PDF found (%s, tier=%s, record=%s): %s",
        selection.kind.value,
        selection.tier.name,
        selection.record.id,
        selection.link,
    )
    return selection.to_payload()
