from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable
from contextlib import suppress
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, cast
from urllib.parse import urlsplit

from web2builder.capture.browser import BrowserManager
from web2builder.config import RunConfig
from web2builder.errors import CaptureError, NavigationError
from web2builder.pipeline.clone import CloneResult, run_clone
from web2builder.report.builder import build_clone_response, safe_filename, template_bytes

logger = logging.getLogger(__name__)

SCAN_PATH = "/api/clone/scan"
DOWNLOAD_PATH = "/api/clone/download"
HEALTH_PATH = "/api/health"
TEST_PATH = "/api/clone/test"
MAX_BODY_BYTES = 20 * 1024 * 1024

CloneFn = Callable[..., CloneResult]


@dataclasses.dataclass(slots=True)
class ApiResponse:
    status: int
    body: bytes
    content_type: str = "application/json; charset=utf-8"
    headers: dict[str, str] = dataclasses.field(default_factory=dict)


def json_response(status: int, payload: dict[str, Any]) -> ApiResponse:
    return ApiResponse(status, json.dumps(payload, ensure_ascii=False).encode("utf-8"))


def error_details(error: Exception) -> tuple[int, dict[str, Any]]:
    if isinstance(error, NavigationError):
        return 502, {
            "error": "Failed to load the source page",
            "details": str(error),
            "attempted": list(error.attempted),
        }
    if isinstance(error, CaptureError):
        return 502, {
            "error": "Failed to capture the source page",
            "details": str(error),
            "breakpoint": error.breakpoint,
        }
    if isinstance(error, ValueError):
        return 400, {"error": "Invalid URL format", "details": str(error)}
    return 500, {"error": "Failed to clone website", "details": str(error) or type(error).__name__}


def handle_scan(
    payload: Any,
    *,
    config: RunConfig,
    clone_fn: CloneFn = run_clone,
    browser: BrowserManager | None = None,
) -> ApiResponse:
    if not isinstance(payload, dict) or not payload.get("url"):
        return json_response(400, {"error": "URL is required"})
    url = str(payload["url"]).strip()
    skip = bool(payload.get("skipVerification", False))
    run_config = dataclasses.replace(config, url=url, skip_verification=skip)
    try:
        result = clone_fn(url, config=run_config, skip_verification=skip, browser=browser)
    except Exception as exc:  # noqa: BLE001
        status, body = error_details(exc)
        if status >= 500:
            logger.exception("clone request for %s failed", url)
        else:
            logger.warning("clone request for %s failed: %s", url, exc)
        return json_response(status, body)
    return json_response(200, build_clone_response(result, include_screenshots=config.include_screenshots))


def handle_download(payload: Any) -> ApiResponse:
    if not isinstance(payload, dict) or not isinstance(payload.get("template"), dict):
        return json_response(400, {"error": "Template data is required"})
    filename = safe_filename(str(payload.get("filename") or "cloned-template"))
    return ApiResponse(
        200,
        template_bytes(payload["template"]),
        content_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}.json"'},
    )


def handle_test() -> ApiResponse:
    return json_response(
        200,
        {
            "status": "Clone API is running",
            "endpoints": [
                f"POST {SCAN_PATH} - Scan and clone a webpage",
                f"POST {DOWNLOAD_PATH} - Download template file",
                f"GET {HEALTH_PATH} - Health check",
            ],
        },
    )


class CloneHTTPServer(HTTPServer):
    """Single-threaded: Playwright's sync API is bound to one thread.

    One browser serves every request; it starts on the first scan and stops
    when the server is closed.
    """

    def __init__(
        self,
        server_address: tuple[str, int],
        config: RunConfig,
        clone_fn: CloneFn = run_clone,
        browser: BrowserManager | None = None,
    ) -> None:
        super().__init__(server_address, CloneRequestHandler)
        self.config = config
        self.clone_fn = clone_fn
        self.browser = browser or BrowserManager(headful=config.headful, user_agent=config.user_agent)

    def server_close(self) -> None:
        try:
            super().server_close()
        finally:
            self.browser.shutdown()


class CloneRequestHandler(BaseHTTPRequestHandler):
    server: CloneHTTPServer

    def do_GET(self) -> None:  # noqa: N802
        path = urlsplit(self.path).path
        if path == HEALTH_PATH:
            self._send(json_response(200, {"status": "OK", "message": "web2builder API is running"}))
            return
        if path == TEST_PATH:
            self._send(handle_test())
            return
        self._send(json_response(404, {"error": "Not Found"}))

    def do_POST(self) -> None:  # noqa: N802
        path = urlsplit(self.path).path
        if path not in {SCAN_PATH, DOWNLOAD_PATH}:
            self._send(json_response(404, {"error": "Not Found"}))
            return
        payload = self._read_json()
        if payload is None:
            self._send(json_response(400, {"error": "Request body must be a JSON object"}))
            return
        if path == SCAN_PATH:
            self._send(handle_scan(
                    payload, config=self.server.config, clone_fn=self.server.clone_fn, browser=self.server.browser
                ))
        else:
            self._send(handle_download(payload))

    def log_message(self, format: str, *args: object) -> None:  # noqa: A003
        logger.debug("%s - %s", self.address_string(), format % args)

    def _read_json(self) -> dict[str, Any] | None:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            return None
        if length <= 0 or length > MAX_BODY_BYTES:
            return None
        raw = self.rfile.read(length)
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        return payload if isinstance(payload, dict) else None

    def _send(self, response: ApiResponse) -> None:
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(response.body)))
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(response.body)


def serve_api(*, config: RunConfig, host: str = "127.0.0.1", port: int = 5000) -> None:
    with CloneHTTPServer((host, port), config) as httpd:
        address = cast(tuple[str, int], httpd.server_address)
        logger.info("web2builder API serving at http://%s:%d/", address[0], address[1])
        with suppress(KeyboardInterrupt):
            httpd.serve_forever()
