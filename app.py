"""BAC estimate Flask app.

Run from project root:
    python app.py
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any

from flask import Flask, jsonify, request, session as flask_session

from baculator.config import EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile, list_drink_types, standards_from_drink
from baculator.drive import get_drive_advice
from baculator.engine import evaluate
from baculator.errors import BACValidationError
from baculator.session import DrinkingSession
from baculator.timeline import (
    display_zone,
    drink_breakdown,
    drink_markers,
    hourly_labels,
    timeline_events,
    timeline_start,
)

app = Flask(__name__)
app.config["SECRET_KEY"] = os.environ.get("APP_SECRET_KEY", "dev-only-change-me")
app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
app.config["SESSION_COOKIE_HTTPONLY"] = True
app.config["SESSION_COOKIE_SECURE"] = os.environ.get("SESSION_COOKIE_SECURE", "0") == "1"
app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=30)

MIN_WEIGHT_KG = 35.0
MAX_WEIGHT_KG = 250.0
MIN_STANDARDS = 0.25
MAX_STANDARDS = 20.0
MAX_HOURS_AGO = 24.0
MAX_DRINKS = 200
SESSION_KEY = "bac_session"


def _engine_config() -> EngineConfig:
    return EngineConfig.from_env()


def _parse_bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "y", "male"}:
            return True
        if lowered in {"false", "0", "no", "n", "female"}:
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def _clamp_float(value: Any, default: float, min_value: float, max_value: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        parsed = default
    return max(min_value, min(max_value, parsed))


def _parse_time(value: Any) -> datetime:
    """ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        raise BACValidationError("timestamps must be ISO-8601 strings")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise BACValidationError(f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _request_now(raw: Any) -> datetime:
    if raw in (None, ""):
        return datetime.now(timezone.utc)
    return _parse_time(raw)


def _empty_state() -> dict[str, Any]:
    return {
        "configured": False,
        "active": False,
        "current_bac": 0,
        "timeline": [],
        "time_to_sober_hours": 0,
        "time_to_legal_hours": 0,
        "drink_count": 0,
        "drinks": [],
        "drive_advice": None,
    }


def _validation_error(exc: BACValidationError):
    app.logger.info("rejected BAC input: %s", exc)
    return jsonify({"error": str(exc)}), 400


def _result_payload(drinks, profile, now: datetime, config: EngineConfig) -> dict[str, Any]:
    result = evaluate(drinks, profile, now, config)
    payload = result.to_dict()
    payload["events"] = timeline_events(result.timeline, config)
    payload["drive_advice"] = get_drive_advice(result, legal_limit=config.legal_target)
    if drinks:
        zone = display_zone(now, config)
        start = timeline_start(drinks, zone)
        end = result.timeline[-1].at if result.timeline else now
        payload["drink_markers"] = drink_markers(drinks, start)
        payload["hourly_labels"] = hourly_labels(start, end, config, zone)
        payload["drinks"] = drink_breakdown(drinks, profile, now, config)
    else:
        payload["drink_markers"] = []
        payload["hourly_labels"] = []
        payload["drinks"] = []
    return payload


def get_session() -> DrinkingSession | None:
    return DrinkingSession.from_dict(flask_session.get(SESSION_KEY))


def set_session(model: DrinkingSession | None):
    if model is None:
        flask_session.pop(SESSION_KEY, None)
        return
    flask_session[SESSION_KEY] = model.to_dict()


@app.route("/healthz")
def healthz():
    return jsonify({"ok": True})


@app.route("/api/drink-types")
def api_drink_types():
    return jsonify({"drink_types": list_drink_types()})


@app.route("/api/evaluate", methods=["POST"])
def api_evaluate():
    """Stateless estimate: profile, drinks and optional now/config in the body."""
    data = request.get_json(silent=True) or {}
    profile_raw = data.get("profile") or {}
    drinks_raw = data.get("drinks") or []
    if not isinstance(profile_raw, dict) or not isinstance(drinks_raw, list):
        return jsonify({"error": "profile must be an object and drinks a list"}), 400
    if not isinstance(data.get("config") or {}, dict):
        return jsonify({"error": "config must be an object"}), 400
    if len(drinks_raw) > MAX_DRINKS:
        return jsonify({"error": f"at most {MAX_DRINKS} drinks per request"}), 400

    try:
        config = _engine_config().with_overrides(data.get("config"))
        now = _request_now(data.get("now"))
        profile = SubjectProfile(weight_kg=profile_raw.get("weight_kg"), sex=profile_raw.get("sex"))
        drinks = []
        for i, row in enumerate(drinks_raw):
            if not isinstance(row, dict):
                raise BACValidationError(f"drink {i} must be an object")
            drinks.append(DrinkRecord(
                standards=row.get("standards"),
                consumed_complete_at=_parse_time(row.get("consumed_complete_at")),
                drink_id=row.get("id"),
            ))
        return jsonify(_result_payload(drinks, profile, now, config))
    except BACValidationError as exc:
        return _validation_error(exc)


@app.route("/api/setup", methods=["POST"])
def api_setup():
    data = request.get_json(silent=True) or {}
    weight = _clamp_float(data.get("weight_kg"), 75.0, MIN_WEIGHT_KG, MAX_WEIGHT_KG)
    is_male = _parse_bool(data.get("is_male", data.get("sex")), default=True)
    profile = SubjectProfile(weight_kg=weight, sex="male" if is_male else "female")
    set_session(DrinkingSession(profile=profile))
    return jsonify({"ok": True, "weight_kg": weight, "sex": profile.sex})


@app.route("/api/drink", methods=["POST"])
def api_drink():
    model = get_session()
    if model is None:
        return jsonify({"error": "Set weight and sex first"}), 400

    data = request.get_json(silent=True) or {}
    try:
        now = _request_now(data.get("now"))
    except BACValidationError as exc:
        return _validation_error(exc)
    if not model.is_active(now):
        # Auto-closed: the new drink starts a fresh session with the same profile.
        model = DrinkingSession(profile=model.profile)

    hours_ago = _clamp_float(data.get("hours_ago"), 0.0, 0.0, MAX_HOURS_AGO)
    if data.get("drink_key"):
        count = _clamp_float(data.get("count"), 1.0, MIN_STANDARDS, MAX_STANDARDS)
        standards = standards_from_drink(str(data["drink_key"]), count, grams_per_standard=_engine_config().grams_per_standard)
    else:
        standards = _clamp_float(data.get("standards"), 1.0, MIN_STANDARDS, MAX_STANDARDS)

    drink_id = f"d{len(model.drinks) + 1}"
    model.add_drink_ago(hours_ago, standards, now, drink_id=drink_id)
    set_session(model)
    return jsonify({"ok": True, "id": drink_id, "standards": standards})


@app.route("/api/state")
def api_state():
    model = get_session()
    if model is None:
        return jsonify(_empty_state())

    try:
        now = _request_now(request.args.get("now"))
        config = _engine_config()
        drinks = model.drinks_in_scope(now)
        payload = _result_payload(drinks, model.profile, now, config)
    except BACValidationError as exc:
        return _validation_error(exc)

    payload.update({
        "configured": True,
        "active": model.is_active(now),
        "weight_kg": model.profile.weight_kg,
        "sex": model.profile.sex,
    })
    return jsonify(payload)


@app.route("/api/reset", methods=["POST"])
def api_reset():
    model = get_session()
    if model is None:
        return jsonify({"ok": True})
    set_session(DrinkingSession(profile=model.profile))
    return jsonify({"ok": True})


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "0") == "1")
