from http.server import BaseHTTPRequestHandler
from datetime import datetime, timezone
from urllib.parse import urlparse
import json
import os
import sys


# Ensure project root is on path so we can import the converter
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from converter_options import options_from_query  # noqa: E402
from html_to_json import HTMLToJSON, dump_json  # noqa: E402


def _api_log(level: str, event: str, **kwargs) -> None:
    """Structured stdout log for Vercel; all keys JSON-serializable."""
    payload = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event, **{k: v for k, v in kwargs.items() if v is not None}}
    print(json.dumps(payload, default=str, ensure_ascii=False), flush=True)


class handler(BaseHTTPRequestHandler):
    def do_POST(self):
        try:
            mode, options = options_from_query(urlparse(self.path).query)
        except ValueError as exc:
            _api_log("WARN", "extract_bad_options", error=str(exc))
            self._send_json({"error": str(exc)}, status=400)
            return

        try:
            content_length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            content_length = 0

        if content_length <= 0:
            self._send_json({"error": "Empty request body."}, status=400)
            return

        raw_body = self.rfile.read(content_length)
        if not raw_body:
            self._send_json({"error": "Empty request body."}, status=400)
            return

        charset = "utf-8"
        content_type = self.headers.get("Content-Type", "")
        if "charset=" in content_type:
            charset = content_type.split("charset=")[-1].split(";")[0].strip() or "utf-8"

        try:
            html_content = raw_body.decode(charset, errors="replace")
        except LookupError:
            self._send_json({"error": f"Unknown charset: {charset}"}, status=400)
            return

        _api_log("INFO", "extract_start", mode=mode.value, bytes=len(raw_body))
        try:
            result = HTMLToJSON(html_content, options).convert(mode)
        except Exception as exc:
            _api_log("ERROR", "extract_failed", mode=mode.value, error=str(exc))
            self._send_json({"error": f"Conversion failed: {exc}"}, status=500)
            return

        self._send_json(result, status=200, indent=options.indent)

    def do_GET(self):
        self._send_json({"error": "Use POST to submit HTML."}, status=405)

    def _send_json(self, payload, status=200, indent=True):
        body = dump_json(payload, indent=indent).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)
