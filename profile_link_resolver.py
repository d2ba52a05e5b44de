# profile_link_resolver.py
"""
Pick the best previously generated PDF link for a LinkedIn profile.

The Airtable table may hold several rows for the same person / profile
(re-submissions, different users analysing the same profile, rows that only
point at a Drive folder, ...). Given those rows plus the target email and
profile URL, resolve() selects at most one row and returns its link,
rewritten into a Drive "preview" URL when possible.

Preference order (first hit wins, rows ordered most recent first):

    strict-file > loose-file > any-file > strict-any > loose-any > any-any

- strict: normalized profile URLs are equal
- loose:  one normalized profile URL is a prefix of the other
- any:    no URL constraint, but the row must belong to the target email
- file:   link looks like a single document (Drive file or *.pdf)

Everything here is pure: no network, no env, nothing raised for bad URLs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qs, urlsplit

# Airtable column names
EMAIL_FIELD = "UsuarioEmail"
PROFILE_URL_FIELD = "URLPerfil"
PDF_URL_FIELD = "URL_informePDF"

DRIVE_PREVIEW_TEMPLATE = "https://drive.google.com/file/d/{file_id}/preview"

_HTTP_LINK_RE = re.compile(r"^https?://", re.IGNORECASE)
_TRAILING_RE = re.compile(r"[/\s]+$")
_QUERY_OR_FRAGMENT_RE = re.compile(r"[?#]")
_LINKEDIN_HANDLE_RE = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)
_DRIVE_FILE_PATH_RE = re.compile(r"/file/d/([^/?#]+)")
_DRIVE_FOLDER_RE = re.compile(
    r"drive\.google\.com/(drive/(u/\d+/)?folders|folders|folder/d)/",
    re.IGNORECASE,
)
_DRIVE_VIEW_RE = re.compile(r"drive\.google\.com/.*/view(\?|$)", re.IGNORECASE)
_VIEW_SEGMENT_RE = re.compile(r"/view(?=\?|$)", re.IGNORECASE)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class LinkKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"
    UNKNOWN = "unknown"


class MatchTier(IntEnum):
    """Lower value = more preferred. PINNED is the explicit recordId hit."""

    PINNED = 0
    STRICT_FILE = 1
    LOOSE_FILE = 2
    ANY_FILE = 3
    STRICT_ANY = 4
    LOOSE_ANY = 5
    ANY_ANY = 6


# ---------- Records ----------

def parse_created_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class CandidateRecord:
    id: str
    owner_email: str = ""
    profile_url: str = ""
    document_link: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_airtable(cls, raw: Dict[str, Any]) -> "CandidateRecord":
        """Build from an Airtable record JSON: {id, createdTime, fields}."""
        fields = raw.get("fields") or {}
        link = fields.get(PDF_URL_FIELD)
        return cls(
            id=str(raw.get("id") or ""),
            owner_email=str(fields.get(EMAIL_FIELD) or ""),
            profile_url=str(fields.get(PROFILE_URL_FIELD) or ""),
            document_link=link if isinstance(link, str) else None,
            created_at=parse_created_time(raw.get("createdTime")),
        )


@dataclass(frozen=True)
class Selection:
    record: CandidateRecord
    link: str
    kind: LinkKind
    tier: MatchTier

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": True,
            "found": True,
            "urlPDF": self.link,
            "driveKind": self.kind.value,
            "recordId": self.record.id,
        }


# ---------- URL helpers ----------

def normalize_profile_url(url: Any) -> str:
    """
    scheme://host[:port]/path, lowercased, without query, fragment or
    trailing slashes. Anything that is not an absolute URL gets the same
    lowercase / cut / trailing cleanup and is returned as is, never raising.
    """
    cleaned = _clean(str(url if url is not None else ""))
    try:
        parts = urlsplit(cleaned)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return cleaned

    if not parts.scheme or not (host or "").strip():
        return cleaned

    if ":" in host:
        host = f"[{host}]"
    netloc = f"{host}:{port}" if port is not None else host
    return _clean(f"{parts.scheme}://{netloc}{parts.path}")


def _clean(value: str) -> str:
    value = _QUERY_OR_FRAGMENT_RE.split(value.strip().lower(), 1)[0]
    return _TRAILING_RE.sub("", value)


def extract_linkedin_handle(url: Any) -> str:
    m = _LINKEDIN_HANDLE_RE.search(str(url or ""))
    return m.group(1) if m else ""


def _is_google_host(link: str) -> bool:
    try:
        host = urlsplit(link).hostname or ""
    except ValueError:
        return False
    return host == "google.com" or host.endswith(".google.com")


def extract_drive_file_id(link: Any) -> Optional[str]:
    """File id from .../file/d/<id>/... or open?id=<id> / uc?id=<id> on Google hosts."""
    s = str(link or "")
    if not _is_google_host(s):
        return None

    m = _DRIVE_FILE_PATH_RE.search(s)
    if m:
        return m.group(1)

    ids = parse_qs(urlsplit(s).query).get("id")
    if ids and ids[0]:
        return ids[0]
    return None


def is_drive_folder(link: Any) -> bool:
    return bool(_DRIVE_FOLDER_RE.search(str(link or "")))


def _path_is_pdf(link: str) -> bool:
    try:
        path = urlsplit(link).path
    except ValueError:
        path = link.split("?")[0]
    return path.lower().endswith(".pdf")


def classify_link(link: Any) -> LinkKind:
    s = str(link or "")
    if is_drive_folder(s):
        return LinkKind.FOLDER
    if extract_drive_file_id(s) or _path_is_pdf(s):
        return LinkKind.FILE
    return LinkKind.UNKNOWN


def to_preview_link(link: str) -> str:
    """
    Drive links become inline-renderable preview URLs:
      .../file/d/<id>/view   -> https://drive.google.com/file/d/<id>/preview
      open?id=<id>           -> https://drive.google.com/file/d/<id>/preview
      other Drive .../view   -> same URL with /view -> /preview
    Everything else is returned untouched.
    """
    file_id = extract_drive_file_id(link)
    if file_id:
        return DRIVE_PREVIEW_TEMPLATE.format(file_id=file_id)
    if _DRIVE_VIEW_RE.search(link):
        return _VIEW_SEGMENT_RE.sub("/preview", link, count=1)
    return link


def has_http_link(record: CandidateRecord) -> bool:
    return bool(record.document_link) and bool(_HTTP_LINK_RE.match(record.document_link))


# ---------- Matching ----------

def _recency_key(record: CandidateRecord) -> datetime:
    dt = record.created_at
    if dt is None:
        return _OLDEST
    # naive timestamps are taken as UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _strict_match(record: CandidateRecord, target: str) -> bool:
    if not target:
        return False
    return normalize_profile_url(record.profile_url) == target


def _loose_match(record: CandidateRecord, target: str) -> bool:
    if not target:
        return False
    url = normalize_profile_url(record.profile_url)
    if not url:
        return False
    return url.startswith(target) or target.startswith(url)


def _email_match(record: CandidateRecord, target_email: str) -> bool:
    email = (target_email or "").strip().lower()
    return bool(email) and record.owner_email.strip().lower() == email


def _select(record: CandidateRecord, tier: MatchTier) -> Selection:
    link = to_preview_link(record.document_link or "")
    return Selection(record=record, link=link, kind=classify_link(link), tier=tier)


def _first(records: Iterable[CandidateRecord], files_only: bool) -> Optional[CandidateRecord]:
    for record in records:
        if not files_only or classify_link(record.document_link) is LinkKind.FILE:
            return record
    return None


def resolve(
    candidates: List[CandidateRecord],
    target_email: str,
    target_profile_url: str,
    record_id: Optional[str] = None,
) -> Optional[Selection]:
    """
    Return the best Selection for (target_email, target_profile_url), or
    None when no candidate carries a usable link.

    If record_id names a candidate that has any link at all, that candidate
    wins outright (the extension remembered which row it generated).
    """
    if record_id:
        for record in candidates:
            if record.id == record_id and (record.document_link or "").strip():
                return _select(record, MatchTier.PINNED)

    # Stable: equal timestamps keep the caller's order
    ordered = sorted(candidates, key=_recency_key, reverse=True)
    with_link = [r for r in ordered if has_http_link(r)]
    if not with_link:
        return None

    target = normalize_profile_url(target_profile_url)
    strict = [r for r in with_link if _strict_match(r, target)]
    loose = [r for r in with_link if _loose_match(r, target)]
    owned = [r for r in with_link if _email_match(r, target_email)]

    tiers = [
        (MatchTier.STRICT_FILE, strict, True),
        (MatchTier.LOOSE_FILE, loose, True),
        (MatchTier.ANY_FILE, owned, True),
        (MatchTier.STRICT_ANY, strict, False),
        (MatchTier.LOOSE_ANY, loose, False),
        (MatchTier.ANY_ANY, owned, False),
    ]
    for tier, members, files_only in tiers:
        hit = _first(members, files_only)
        if hit is not None:
            return _select(hit, tier)

    return None
