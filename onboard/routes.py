from __future__ import annotations

import io
import logging

from flask import Blueprint, abort, current_app, jsonify, request, send_file, send_from_directory

from .errors import (
    ChannelError,
    CollaboratorError,
    InstallError,
    LaunchError,
    ManifestError,
    OnboardError,
    TransportError,
)
from .models import Player
from .scanning import game_dir, load_manifest, manifest_path
from .utils import placeholder_svg

log = logging.getLogger(__name__)

bp = Blueprint("onboard", __name__)

_STATUS = (
    (TransportError, 502),
    (InstallError, 500),
    (LaunchError, 500),
    (ChannelError, 500),
    (CollaboratorError, 503),
    (ManifestError, 404),
)


def _runtime():
    return current_app.extensions["onboard"]


def _games(games):
    return jsonify([g.to_dict() for g in games])


def _error(message: str, status: int):
    return jsonify({"ok": False, "error": message}), status


@bp.errorhandler(OnboardError)
def onboard_error(e: OnboardError):
    status = next((code for cls, code in _STATUS if isinstance(e, cls)), 500)
    log.warning("Request %s failed: %s", request.path, e)
    body = {"ok": False, "error": str(e)}
    diagnostics = getattr(e, "diagnostics", None)
    if diagnostics:
        body["diagnostics"] = [d.to_dict() for d in diagnostics]
    return jsonify(body), status


@bp.errorhandler(FileNotFoundError)
def missing_path(e: FileNotFoundError):
    return _error(f"Not found: {e.filename or e}", 404)


@bp.errorhandler(ValueError)
def bad_request(e: ValueError):
    return _error(str(e), 400)


@bp.get("/games")
def games():
    rt = _runtime()
    return _games(rt.call(rt.catalog.list_games()))


@bp.get("/games/local")
def games_local():
    return _games(_runtime().catalog.list_games_from_storage())


@bp.get("/games/current")
def games_current():
    return jsonify(_runtime().current_game().to_dict())


@bp.get("/games/<game_id>")
def game(game_id):
    rt = _runtime()
    return jsonify(rt.call(rt.catalog.get_game(game_id)).to_dict())


@bp.post("/games/<game_id>/download")
def game_download(game_id):
    rt = _runtime()
    installed = rt.call(rt.installer.ensure_installed(game_id))
    return jsonify({"ok": True, "game": installed.to_dict()})


@bp.post("/games/<game_id>/assets/<kind>")
def asset_download(game_id, kind):
    if kind not in current_app.config["ALLOWED_ASSETS"]:
        abort(404)
    rt = _runtime()
    path = rt.call(rt.installer.download_asset(game_id, kind))
    return jsonify({"ok": True, "path": str(path)})


@bp.get("/games/<game_id>/assets/<kind>")
def asset(game_id, kind):
    if kind not in current_app.config["ALLOWED_ASSETS"]:
        abort(404)
    root = _runtime().installer.games_root
    folder = game_dir(root, game_id)
    filename = f"{kind}.png"
    if (folder / filename).exists():
        return send_from_directory(folder, filename)
    try:
        title = load_manifest(manifest_path(root, game_id)).name
    except ManifestError:
        title = game_id
    svg = placeholder_svg(title)
    return send_file(io.BytesIO(svg.encode("utf-8")), mimetype="image/svg+xml")


@bp.post("/games/<game_id>/launch")
def launch(game_id):
    # Blocks until the game exits; launches are serialized by the caller.
    rt = _runtime()
    code = rt.call(rt.supervisor.launch(game_id))
    return jsonify({"ok": True, "exit_code": code, "game": rt.current_game().to_dict()})


@bp.get("/tags")
def tags():
    rt = _runtime()
    return jsonify([t.to_dict() for t in rt.call(rt.catalog.list_tags())])


@bp.get("/tags/<name>")
def tag(name):
    rt = _runtime()
    return jsonify(rt.call(rt.catalog.get_tag(name)).to_dict())


@bp.get("/tags/<name>/games")
def tag_games(name):
    rt = _runtime()
    return _games(rt.call(rt.catalog.list_games_by_tag(name)))


@bp.get("/users/<uid>")
def user(uid):
    rt = _runtime()
    return jsonify(rt.call(rt.catalog.get_user(uid)).to_dict())


@bp.get("/nfc/tags")
def nfc_tags():
    raw = (request.args.get("player") or "P1").upper()
    try:
        player = Player(raw)
    except ValueError:
        return _error(f"Unknown player: {raw}", 400)
    rt = _runtime()
    return jsonify({"tag": rt.call(rt.nfc_tags(player))})


@bp.get("/nfc/users/<association_id>")
def nfc_user(association_id):
    rt = _runtime()
    return jsonify(rt.call(rt.nfc_user(association_id)))


@bp.get("/favicon.ico")
def favicon():
    return ("", 204)
