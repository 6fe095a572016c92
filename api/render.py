from http.server import BaseHTTPRequestHandler
from datetime import datetime, timezone
from urllib.parse import urlparse
import json
import os
import sys


PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from converter_options import MalformedJSONError, options_from_query  # noqa: E402
from json_to_html import convert_json_to_html  # noqa: E402


def _api_log(level: str, event: str, **kwargs) -> None:
    """Structured stdout log for Vercel; all keys JSON-serializable."""
    payload = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event, **{k: v for k, v in kwargs.items() if v is not None}}
    print(json.dumps(payload, default=str, ensure_ascii=False), flush=True)


class handler(BaseHTTPRequestHandler):
    def do_POST(self):
        try:
            _, options = options_from_query(urlparse(self.path).query)
        except ValueError as exc:
            self._send_json({"error": str(exc)}, status=400)
            return

        try:
            content_length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            content_length = 0

        if content_length <= 0:
            self._send_json({"error": "Empty request body."}, status=400)
            return

        json_text = self.rfile.read(content_length).decode("utf-8", errors="replace")
        try:
            markup = convert_json_to_html(json_text, options)
        except MalformedJSONError as exc:
            _api_log("WARN", "render_malformed_json", error=str(exc))
            self._send_json({"error": str(exc)}, status=400)
            return

        _api_log("INFO", "render_ok", bytes=len(markup))
        body = markup.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        self._send_json({"error": "Use POST to submit JSON."}, status=405)

    def _send_json(self, payload, status=200):
        body = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)
