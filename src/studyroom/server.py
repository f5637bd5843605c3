"""Serve the study room UI alongside its JSON API."""

from __future__ import annotations

import json
import logging
import re
from concurrent.futures import Future
from dataclasses import dataclass
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qs, urlparse

from .config import ServerConfig
from .core.base import Scheduler
from .core.registry import registry
from .core.scheduler import ThreadedScheduler
from .errors import ValidationError
from .playback.output import SimulatedAudioOutput
from .room import StudyRoom
from .sources.catalog import resolve_sound_url
from .sources.chime import chime_payload
from .storage import MemStorage

logger = logging.getLogger(__name__)

Payload = Any
Response = tuple[HTTPStatus, Payload]


@dataclass
class _Route:
    method: str
    pattern: re.Pattern[str]
    handler: Callable[..., Response]
    failure: str


def _body_dict(body: Any) -> dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Expected a JSON object", [{"path": [], "message": "not an object"}])
    return body


def _sound_url(body: dict[str, Any], required: bool = True) -> str | None:
    if body.get("soundscape"):
        return registry.soundscape(str(body["soundscape"])).url
    url = body.get("url")
    if url is None:
        if required:
            raise ValidationError("Missing 'url' or 'soundscape'")
        return None
    if not isinstance(url, str):
        raise ValidationError("'url' must be a string")
    return resolve_sound_url(url)


class StudyRoomAPI:
    """Route JSON requests to storage and to the room.

    Room and player calls are handed to the scheduler thread and awaited, so
    each response reflects the state right after the operation ran.
    """

    def __init__(self, room: StudyRoom, scheduler: Scheduler, call_timeout: float = 5.0) -> None:
        self.room = room
        self.storage = room.storage
        self.scheduler = scheduler
        self.call_timeout = call_timeout
        self._routes: list[_Route] = []
        self._add("GET", r"/api/goals", self.list_goals, "Failed to fetch goals")
        self._add("POST", r"/api/goals", self.create_goal, "Failed to create goal")
        self._add("PATCH", r"/api/goals/(?P<goal_id>[^/]+)", self.update_goal, "Failed to update goal")
        self._add("DELETE", r"/api/goals/(?P<goal_id>[^/]+)", self.delete_goal, "Failed to delete goal")
        self._add("GET", r"/api/sessions", self.list_sessions, "Failed to fetch sessions")
        self._add("POST", r"/api/sessions", self.create_session, "Failed to create session")
        self._add("GET", r"/api/soundscapes", self.list_soundscapes, "Failed to fetch soundscapes")
        self._add("GET", r"/api/backgrounds", self.list_backgrounds, "Failed to fetch backgrounds")
        self._add("GET", r"/api/chime", self.chime, "Failed to render chime")
        self._add("GET", r"/api/room", self.room_status, "Failed to fetch room")
        self._add("POST", r"/api/room", self.update_room, "Failed to update room")
        self._add("GET", r"/api/player", self.player_status, "Failed to fetch player")
        self._add("POST", r"/api/player/(?P<action>[a-z]+)", self.player_action, "Player command failed")
        self._add("GET", r"/api/timer", self.timer_status, "Failed to fetch timer")
        self._add("POST", r"/api/timer/(?P<action>[a-z]+)", self.timer_action, "Timer command failed")

    def _add(self, method: str, pattern: str, handler: Callable[..., Response], failure: str) -> None:
        self._routes.append(_Route(method, re.compile(f"^{pattern}/?$"), handler, failure))

    def handles(self, path: str) -> bool:
        return path.startswith("/api/")

    def dispatch(self, method: str, path: str, body: Any = None, query: dict[str, list[str]] | None = None) -> Response:
        """Answer one request with a status and a JSON-serialisable payload."""

        allowed = False
        for route in self._routes:
            match = route.pattern.match(path)
            if not match:
                continue
            allowed = True
            if route.method != method:
                continue
            try:
                return route.handler(body=body, query=query or {}, **match.groupdict())
            except ValidationError as exc:
                return HTTPStatus.BAD_REQUEST, {"error": str(exc), "details": exc.details}
            except KeyError as exc:
                return HTTPStatus.NOT_FOUND, {"error": exc.args[0] if exc.args else "Not found"}
            except ValueError as exc:
                return HTTPStatus.BAD_REQUEST, {"error": str(exc)}
            except Exception:  # pylint: disable=broad-except
                logger.exception("%s %s failed", method, path)
                return HTTPStatus.INTERNAL_SERVER_ERROR, {"error": route.failure}
        if allowed:
            return HTTPStatus.METHOD_NOT_ALLOWED, {"error": f"{method} not allowed on {path}"}
        return HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"}

    def call_in_room(self, fn: Callable[[], Any]) -> Any:
        result: Future = Future()

        def task() -> None:
            try:
                result.set_result(fn())
            except Exception as exc:  # pylint: disable=broad-except
                result.set_exception(exc)

        self.scheduler.call_soon(task)
        return result.result(timeout=self.call_timeout)

    # --- Goals ----------------------------------------------------------
    def list_goals(self, **_: Any) -> Response:
        return HTTPStatus.OK, [goal.to_dict() for goal in self.storage.get_goals()]

    def create_goal(self, body: Any, **_: Any) -> Response:
        goal = self.storage.create_goal(_body_dict(body))
        return HTTPStatus.CREATED, goal.to_dict()

    def update_goal(self, goal_id: str, body: Any, **_: Any) -> Response:
        goal = self.storage.update_goal(goal_id, _body_dict(body))
        if goal is None:
            return HTTPStatus.NOT_FOUND, {"error": "Goal not found"}
        return HTTPStatus.OK, goal.to_dict()

    def delete_goal(self, goal_id: str, **_: Any) -> Response:
        if not self.storage.delete_goal(goal_id):
            return HTTPStatus.NOT_FOUND, {"error": "Goal not found"}
        return HTTPStatus.NO_CONTENT, None

    # --- Sessions -------------------------------------------------------
    def list_sessions(self, **_: Any) -> Response:
        return HTTPStatus.OK, [session.to_dict() for session in self.storage.get_sessions()]

    def create_session(self, body: Any, **_: Any) -> Response:
        session = self.storage.create_session(_body_dict(body))
        return HTTPStatus.CREATED, session.to_dict()

    # --- Catalog --------------------------------------------------------
    def list_soundscapes(self, **_: Any) -> Response:
        return HTTPStatus.OK, [item.to_dict() for item in registry.soundscapes()]

    def list_backgrounds(self, **_: Any) -> Response:
        return HTTPStatus.OK, [item.to_dict() for item in registry.backgrounds()]

    def chime(self, query: dict[str, list[str]], **_: Any) -> Response:
        duration = float(query.get("duration", ["0.8"])[0])
        sample_rate = int(query.get("sample_rate", ["22050"])[0])
        return HTTPStatus.OK, chime_payload(duration=duration, sample_rate=sample_rate)

    # --- Room -----------------------------------------------------------
    def room_status(self, **_: Any) -> Response:
        return HTTPStatus.OK, self.call_in_room(self.room.to_dict)

    def update_room(self, body: Any, **_: Any) -> Response:
        values = _body_dict(body)

        def apply() -> dict[str, Any]:
            if values.get("background"):
                self.room.select_background(str(values["background"]))
            if values.get("soundscape"):
                self.room.select_soundscape(str(values["soundscape"]))
            return self.room.to_dict()

        return HTTPStatus.OK, self.call_in_room(apply)

    # --- Player ---------------------------------------------------------
    def player_status(self, **_: Any) -> Response:
        return HTTPStatus.OK, self.call_in_room(lambda: self.room.player.status().to_dict())

    def player_action(self, action: str, body: Any, **_: Any) -> Response:
        values = _body_dict(body)
        room = self.room
        player = room.player
        if action == "play":
            url = _sound_url(values)
            command: Callable[[], None] = lambda: room.play(url)
        elif action == "sound":
            url = _sound_url(values)
            command = lambda: player.set_sound(url)
        elif action == "toggle":
            url = _sound_url(values, required=False)
            command = lambda: room.toggle_sound(url)
        elif action == "pause":
            command = player.pause
        elif action == "resume":
            command = player.resume
        elif action == "stop":
            command = player.stop
        elif action == "unlock":
            command = getattr(player.audio, "unlock", lambda: None)
        else:
            raise KeyError(f"Unknown player action '{action}'")

        def run() -> dict[str, Any]:
            command()
            return player.status().to_dict()

        return HTTPStatus.OK, self.call_in_room(run)

    # --- Timer ----------------------------------------------------------
    def timer_status(self, **_: Any) -> Response:
        return HTTPStatus.OK, self.call_in_room(self.room.timer.to_dict)

    def timer_action(self, action: str, body: Any, **_: Any) -> Response:
        values = _body_dict(body)
        timer = self.room.timer
        if action not in {"start", "pause", "reset"}:
            raise KeyError(f"Unknown timer action '{action}'")

        def run() -> dict[str, Any]:
            if action == "start":
                if "minutes" in values and not timer.running:
                    timer.minutes = values["minutes"]
                timer.start()
            elif action == "pause":
                timer.pause()
            else:
                timer.reset()
            return timer.to_dict()

        return HTTPStatus.OK, self.call_in_room(run)


class StudyRoomRequestHandler(SimpleHTTPRequestHandler):
    """Serve static assets and the JSON API."""

    def __init__(self, *args: Any, directory: str, api: StudyRoomAPI, ui_path: Path | None, **kwargs: Any) -> None:
        self.api = api
        self.ui_path = ui_path
        super().__init__(*args, directory=directory, **kwargs)

    # --- Response helpers -------------------------------------------
    def _send_json(self, payload: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        if status == HTTPStatus.NO_CONTENT:
            self.send_response(status)
            self.end_headers()
            return
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length", "0") or 0)
        raw = self.rfile.read(length) if length else b""
        if not raw.strip():
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError("Invalid JSON payload") from exc

    def _handle_api(self, method: str) -> None:
        parsed = urlparse(self.path)
        body = None
        if method in {"POST", "PATCH", "PUT"}:
            try:
                body = self._read_json()
            except ValueError as exc:
                self._send_json({"error": str(exc)}, HTTPStatus.BAD_REQUEST)
                return
        status, payload = self.api.dispatch(method, parsed.path, body, parse_qs(parsed.query))
        self._send_json(payload, status)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002 - stdlib signature
        logger.debug("%s - %s", self.address_string(), format % args)

    # --- Routing -----------------------------------------------------
    def do_GET(self) -> None:  # noqa: N802 - stdlib signature
        path = urlparse(self.path).path
        if self.api.handles(path):
            self._handle_api("GET")
            return
        if path in {"/", "", "/ui"} and self.ui_path is not None:
            self._serve_ui()
            return
        super().do_GET()

    def do_POST(self) -> None:  # noqa: N802 - stdlib signature
        self._handle_api("POST")

    def do_PATCH(self) -> None:  # noqa: N802 - stdlib signature
        self._handle_api("PATCH")

    def do_DELETE(self) -> None:  # noqa: N802 - stdlib signature
        self._handle_api("DELETE")

    # --- Static helpers ----------------------------------------------
    def _serve_ui(self) -> None:
        if self.ui_path is None or not self.ui_path.exists():
            self.send_error(HTTPStatus.NOT_FOUND, "UI file missing")
            return
        data = self.ui_path.read_bytes()
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)


def create_server(config: ServerConfig, scheduler: Scheduler | None = None) -> tuple[ThreadingHTTPServer, StudyRoomAPI]:
    """Build the HTTP server and its API without starting either."""

    scheduler = scheduler or ThreadedScheduler()
    room = StudyRoom(SimulatedAudioOutput(scheduler), scheduler, MemStorage(), config.player)
    api = StudyRoomAPI(room, scheduler)
    ui_path = config.ui
    directory = str(ui_path.resolve().parent) if ui_path else str(Path.cwd())

    def handler(*args: Any, **kwargs: Any) -> StudyRoomRequestHandler:
        kwargs.setdefault("directory", directory)
        kwargs.setdefault("api", api)
        kwargs.setdefault("ui_path", ui_path)
        return StudyRoomRequestHandler(*args, **kwargs)

    httpd = ThreadingHTTPServer((config.host, config.port), handler)
    httpd.daemon_threads = True
    return httpd, api


def serve(config: ServerConfig | None = None) -> None:
    config = config or ServerConfig.from_env()
    scheduler = ThreadedScheduler()
    httpd, api = create_server(config, scheduler)
    host, port = httpd.server_address[:2]
    logger.info("Study room available at http://%s:%s/", host, port)
    try:
        with httpd:
            httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        api.call_in_room(api.room.close)
        scheduler.close()


__all__ = ["StudyRoomAPI", "StudyRoomRequestHandler", "create_server", "serve"]
