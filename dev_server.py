from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import urlparse
import os

from converter_options import MalformedJSONError, options_from_query
from html_to_json import HTMLToJSON, dump_json
from json_to_html import convert_json_to_html


class DevHandler(BaseHTTPRequestHandler):
    def _set_headers(self, status=200, content_type="application/json; charset=utf-8"):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def _send_json(self, payload, status=200, indent=True):
        self._set_headers(status)
        self.wfile.write(dump_json(payload, indent=indent).encode("utf-8"))

    def _read_body(self):
        try:
            content_length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            content_length = 0
        if content_length <= 0:
            return None
        return self.rfile.read(content_length).decode("utf-8", errors="replace")

    def do_OPTIONS(self):
        self._set_headers(204)

    def do_POST(self):
        url = urlparse(self.path)
        if url.path == "/extract":
            return self._handle_extract(url.query)
        if url.path == "/render":
            return self._handle_render(url.query)

        self._send_json({"error": "Not found"}, status=404)

    def _handle_extract(self, query):
        try:
            mode, options = options_from_query(query)
        except ValueError as exc:
            self._send_json({"error": str(exc)}, status=400)
            return

        html_content = self._read_body()
        if not html_content:
            self._send_json({"error": "Empty request body."}, status=400)
            return

        try:
            result = HTMLToJSON(html_content, options).convert(mode)
        except Exception as exc:
            self._send_json({"error": f"Conversion failed: {exc}"}, status=500)
            return
        self._send_json(result, status=200, indent=options.indent)

    def _handle_render(self, query):
        try:
            _, options = options_from_query(query)
        except ValueError as exc:
            self._send_json({"error": str(exc)}, status=400)
            return

        json_text = self._read_body()
        if not json_text:
            self._send_json({"error": "Empty request body."}, status=400)
            return

        try:
            markup = convert_json_to_html(json_text, options)
        except MalformedJSONError as exc:
            self._send_json({"error": str(exc)}, status=400)
            return

        self._set_headers(200, content_type="text/html; charset=utf-8")
        self.wfile.write(markup.encode("utf-8"))


def make_server(port: int) -> HTTPServer:
    return HTTPServer(("0.0.0.0", port), DevHandler)


def run():
    port = int(os.environ.get("DEV_SERVER_PORT", "5005"))
    server = make_server(port)
    print(f"Dev API running on http://localhost:{port}")
    print(f"- POST http://localhost:{port}/extract?mode=generic|table|jsonld")
    print(f"- POST http://localhost:{port}/render")
    server.serve_forever()


if __name__ == "__main__":
    run()
