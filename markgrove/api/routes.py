from __future__ import annotations

import asyncio

from flask import current_app, jsonify, request

from markgrove.api import api_bp
from markgrove.errors import ValidationError
from markgrove.services.batch import (
    get_all_bookmarks,
    get_bookmarks_by_id,
    check_updates,
    update_bookmark,
)
from markgrove.services.cascade_delete import delete_bookmarks
from markgrove.services.pipeline import IMPORT_FORMATS, detect_format, import_bookmarks
from markgrove.services.tree_builder import nest_persisted


def _store():
    return current_app.extensions["bookmark_store"]


def _parse_ids(raw) -> list[int]:
    if raw is None or raw == "":
        raise ValueError("ids are required")
    if isinstance(raw, str):
        raw = [part for part in raw.split(",") if part.strip()]
    if not isinstance(raw, list):
        raw = [raw]
    ids = [int(value) for value in raw]
    if not ids:
        raise ValueError("ids are required")
    return ids


def _read_import_payload() -> tuple[str | None, str]:
    upload = request.files.get("file")
    if upload is not None:
        raw = upload.read()
        filename = upload.filename
    else:
        raw = request.get_data()
        filename = None
    if len(raw) > current_app.config["MAX_IMPORT_BYTES"]:
        raise OverflowError("import too large")
    return filename, raw.decode("utf-8-sig", errors="replace")


@api_bp.route("/import", methods=["POST"])
def import_export():
    try:
        filename, payload = _read_import_payload()
    except OverflowError:
        return jsonify({"error": "import too large"}), 413

    if not payload.strip():
        return jsonify({"error": "empty import"}), 400

    fmt = (request.args.get("format") or request.form.get("format") or "").lower()
    if not fmt:
        fmt = detect_format(filename, payload)
    if fmt not in IMPORT_FORMATS:
        return jsonify({"error": f"unsupported format: {fmt}"}), 400

    try:
        summary = asyncio.run(
            import_bookmarks(
                _store(),
                payload,
                fmt,
                policy=current_app.config["FOLDER_MATCH_POLICY"],
            )
        )
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    current_app.logger.info("import finished: %s", summary.as_dict())
    return jsonify({"status": "done", "format": fmt, **summary.as_dict()})


@api_bp.route("/bookmarks", methods=["GET"])
def list_bookmarks():
    raw_ids = request.args.get("ids")
    if raw_ids is None:
        rows = asyncio.run(get_all_bookmarks(_store()))
        return jsonify({"items": [row.as_dict() for row in rows]})

    try:
        ids = _parse_ids(raw_ids)
    except (TypeError, ValueError):
        return jsonify({"error": "invalid ids"}), 400

    rows = asyncio.run(get_bookmarks_by_id(_store(), ids))
    if rows is None:
        return jsonify({"error": "bookmarks not found"}), 404
    return jsonify({"items": [row.as_dict() for row in rows]})


@api_bp.route("/bookmarks/tree", methods=["GET"])
def bookmark_tree():
    rows = asyncio.run(get_all_bookmarks(_store()))
    return jsonify({"items": [node.as_tree_dict() for node in nest_persisted(rows)]})


@api_bp.route("/bookmarks", methods=["PATCH"])
def patch_bookmarks():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "expected a JSON object"}), 400
    try:
        ids = _parse_ids(payload.get("ids"))
        data = payload.get("data")
        asyncio.run(check_updates(_store(), ids, data))
    except (TypeError, ValueError, ValidationError) as exc:
        return jsonify({"error": str(exc) or "invalid update"}), 400

    if not asyncio.run(update_bookmark(_store(), ids, data)):
        return jsonify({"error": "not every bookmark was updated"}), 404
    return jsonify({"status": "updated", "ids": ids})


def _delete_response(ids: list[int]):
    report = asyncio.run(delete_bookmarks(_store(), ids))
    body = report.as_dict()
    if report.failed:
        current_app.logger.warning("delete failed for %s", report.failed)
        return jsonify({"error": "delete failed", **body}), 500
    if report.not_found and not report.removed:
        return jsonify({"error": "bookmark not found", **body}), 404
    return jsonify({"status": "deleted", **body})


@api_bp.route("/bookmarks", methods=["DELETE"])
def delete_many():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "expected a JSON object"}), 400
    try:
        ids = _parse_ids(payload.get("ids"))
    except (TypeError, ValueError):
        return jsonify({"error": "invalid ids"}), 400
    return _delete_response(ids)


@api_bp.route("/bookmarks/<int:bookmark_id>", methods=["DELETE"])
def delete_one(bookmark_id: int):
    return _delete_response([bookmark_id])
