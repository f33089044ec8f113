"""Minimal HTTP API exposing one in-memory assistant session."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlparse

from config import API_HOST, API_PORT
from services.document_store import IngestError, UnsupportedType
from services.session_machine import (
    Action,
    Back,
    BackToMain,
    NextChallenge,
    OpenAsk,
    OpenChallenge,
    RestartChallenge,
    SessionStateMachine,
    SubmitChallengeAnswer,
    SubmitQuestion,
)

LOGGER = logging.getLogger("assistant.api")

_SIMPLE_ACTIONS: dict[str, type] = {
    "open_ask": OpenAsk,
    "open_challenge": OpenChallenge,
    "next_challenge": NextChallenge,
    "back": Back,
    "restart_challenge": RestartChallenge,
    "back_to_main": BackToMain,
}
_TEXT_ACTIONS: dict[str, type] = {
    "submit_question": SubmitQuestion,
    "submit_challenge_answer": SubmitChallengeAnswer,
}


def _now_iso() -> str:
    return datetime.utcnow().replace(microsecond=0).isoformat()


def _parse_action(payload: dict[str, Any]) -> Action:
    """
    Build a session action from ``{"action": name, "text": ...}``.

    Raises:
        ValueError: If the action name is unknown.
    """
    name = str(payload.get("action") or "").strip().lower()
    if name in _SIMPLE_ACTIONS:
        return _SIMPLE_ACTIONS[name]()
    if name in _TEXT_ACTIONS:
        return _TEXT_ACTIONS[name](str(payload.get("text") or ""))
    raise ValueError(f"unknown_action: {name or '<empty>'}")


def _decode_upload(payload: dict[str, Any]) -> tuple[bytes, str, str]:
    """Return (content, mime_type, file_name) from an upload payload."""
    raw = str(payload.get("contentBase64") or "")
    try:
        content = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid_content: {e!s}") from e
    return content, str(payload.get("mimeType") or ""), str(payload.get("fileName") or "")


class AssistantServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], session: SessionStateMachine | None = None) -> None:
        super().__init__(address, ApiHandler)
        self.session = session or SessionStateMachine()


class ApiHandler(BaseHTTPRequestHandler):
    server_version = "SmartAssistantAPI/0.1.0"

    @property
    def session(self) -> SessionStateMachine:
        return self.server.session  # type: ignore[attr-defined]

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        LOGGER.debug("%s - %s", self.address_string(), format % args)

    def _send_json(self, code: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self) -> dict[str, Any]:
        raw_len = self.headers.get("Content-Length")
        try:
            length = int(raw_len or "0")
        except ValueError:
            length = 0
        if length <= 0:
            return {}
        raw = self.rfile.read(length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def do_OPTIONS(self) -> None:  # noqa: N802
        self._send_json(HTTPStatus.NO_CONTENT, {})

    def do_GET(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path == "/health":
            self._send_json(HTTPStatus.OK, {"ok": True, "time": _now_iso()})
            return
        if path == "/api/session":
            self._send_json(HTTPStatus.OK, self.session.view())
            return
        self._send_json(HTTPStatus.NOT_FOUND, {"error": "not_found"})

    def do_POST(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        payload = self._read_json()

        if path == "/api/upload":
            try:
                content, mime_type, file_name = _decode_upload(payload)
            except ValueError as e:
                self._send_json(HTTPStatus.BAD_REQUEST, {"error": str(e)})
                return
            try:
                self.session.upload(content, mime_type=mime_type, file_name=file_name)
            except UnsupportedType as e:
                LOGGER.info("Rejected upload %s (%s)", file_name or "<unnamed>", e.mime_type or "no type")
                self._send_json(
                    HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
                    {"error": "unsupported_type", "message": str(e), "session": self.session.view()},
                )
                return
            except IngestError as e:
                self._send_json(HTTPStatus.BAD_REQUEST, {"error": "ingest_failed", "message": str(e)})
                return
            self._send_json(HTTPStatus.OK, self.session.view())
            return

        if path == "/api/actions":
            try:
                action = _parse_action(payload)
            except ValueError as e:
                self._send_json(HTTPStatus.BAD_REQUEST, {"error": str(e)})
                return
            self.session.dispatch(action)
            self._send_json(HTTPStatus.OK, self.session.view())
            return

        if path == "/api/reset":
            self.session.reset()
            self._send_json(HTTPStatus.OK, self.session.view())
            return

        self._send_json(HTTPStatus.NOT_FOUND, {"error": "not_found"})


def run_api_server(host: str = API_HOST, port: int = API_PORT) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    server = AssistantServer((host, port))
    LOGGER.info("API server listening on http://%s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    run_api_server()
