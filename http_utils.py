# http_utils.py
"""
Shared base for the Vercel Python functions under api/.

Every function file exposes `class handler(JSONRequestHandler)` and only
overrides the verbs it supports (do_GET / do_POST). This base takes care of:

- CORS headers on every response (origin echoed if allowed)
- OPTIONS preflight -> 204, no body
- any other verb -> 405 JSON
- reading the JSON body / query string
- writing JSON responses with Content-Length
"""

from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlsplit

from errors import InvalidInput
from settings import CorsConfig, load_cors_config


class JSONRequestHandler(BaseHTTPRequestHandler):
    # Subclasses set these; cors is built once per process at import time
    cors: CorsConfig = load_cors_config()
    allowed_methods = ("POST",)
    source = "api"

    # ---------- request ----------

    def read_json(self) -> Dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError as e:
            raise InvalidInput("Invalid Content-Length header") from e
        if length <= 0:
            return {}

        raw = self.rfile.read(length)
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidInput(f"Invalid JSON body: {e}") from e

        if not isinstance(data, dict):
            raise InvalidInput("JSON body must be an object")
        return data

    def query_params(self) -> Dict[str, str]:
        query = urlsplit(self.path).query
        return {k: v[0] for k, v in parse_qs(query).items() if v}

    # ---------- response ----------

    def send_cors_headers(self) -> None:
        origin = self.headers.get("Origin") if self.headers else None
        self.send_header("Access-Control-Allow-Origin", self.cors.allow_origin(origin))
        self.send_header("Vary", "Origin")
        self.send_header("Access-Control-Allow-Methods", ",".join(self.allowed_methods + ("OPTIONS",)))
        self.send_header("Access-Control-Allow-Headers", self.cors.allow_headers)
        self.send_header("Access-Control-Max-Age", str(self.cors.max_age))

    def send_json(self, status: int, payload: Optional[Dict[str, Any]]) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8") if payload is not None else b""

        self.send_response(status)
        self.send_cors_headers()
        if payload is not None:
            self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def method_not_allowed(self) -> None:
        allowed = " or ".join(self.allowed_methods)
        self.send_json(405, {"success": False, "error": f"Method not allowed. Use {allowed}."})

    # ---------- verbs ----------

    def do_OPTIONS(self):
        self.send_json(204, None)

    def do_GET(self):
        self.method_not_allowed()

    def do_POST(self):
        self.method_not_allowed()

    def do_PUT(self):
        self.method_not_allowed()

    def do_DELETE(self):
        self.method_not_allowed()
