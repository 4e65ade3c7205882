import logging
import os
from datetime import datetime, timezone
from http import HTTPStatus
from uuid import uuid4

from flask import Flask, jsonify, request, session
from pydantic import ValidationError

from credit_calc.exceptions import CalculationError
from credit_calc.mortgage import create_mortgage_calculation
from credit_calc.presets import DEFAULT_PRESETS, get_presets_by_bank
from credit_calc.revolving import create_calculation
from credit_calc.schemas import MortgageRequest, RevolvingRequest
from credit_calc.utils import to_jsonable
from credit_calc_web.calculation_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
calculation_store = create_store_from_env(
    os.environ.get("CREDIT_CALC_DATABASE_URL"),
    os.environ.get("CREDIT_CALC_MAX_SAVED"),
)

CALCULATION_KINDS = ("revolving", "mortgage")


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _run_calculation(kind: str, request_model, build):
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        return jsonify({"detail": "Request body must be a JSON object"}), HTTPStatus.BAD_REQUEST
    try:
        parsed = request_model.model_validate(payload)
    except ValidationError as exc:
        return jsonify({"detail": exc.errors(include_url=False, include_context=False)}), HTTPStatus.BAD_REQUEST

    try:
        result = build(
            parsed.input.to_input(),
            parsed.name,
            parsed.preset_id,
            calculation_id=uuid4().hex,
            created_at=datetime.now(timezone.utc),
        )
    except CalculationError as exc:
        logger.info("Rejected %s calculation: %s", kind, exc)
        body = {"detail": str(exc)}
        if getattr(exc, "month", None) is not None:
            body["month"] = exc.month
        return jsonify(body), HTTPStatus.UNPROCESSABLE_ENTITY

    serialized = to_jsonable(result)
    if parsed.save:
        calculation_store.add_calculation(_ensure_user_token(), kind, serialized)
    return jsonify(serialized), HTTPStatus.OK


@app.post("/api/revolving")
def revolving():
    """Simulate a revolving balance; optionally save the result."""
    return _run_calculation("revolving", RevolvingRequest, create_calculation)


@app.post("/api/mortgage")
def mortgage():
    """Build a mortgage schedule; optionally save the result."""
    return _run_calculation("mortgage", MortgageRequest, create_mortgage_calculation)


@app.get("/api/calculations")
def list_calculations():
    kind = request.args.get("kind")
    if kind and kind not in CALCULATION_KINDS:
        return jsonify({"detail": f"Unknown calculation kind: {kind}"}), HTTPStatus.BAD_REQUEST
    user_token = _ensure_user_token()
    return jsonify(calculation_store.list_calculations(user_token, kind=kind, query=request.args.get("q")))


@app.get("/api/calculations/<calculation_id>")
def get_calculation(calculation_id: str):
    saved = calculation_store.get_calculation(session.get("user_token"), calculation_id)
    if saved is None:
        return jsonify({"detail": "Calculation not found"}), HTTPStatus.NOT_FOUND
    return jsonify(saved)


@app.delete("/api/calculations/<calculation_id>")
def remove_calculation(calculation_id: str):
    if not calculation_store.remove_calculation(session.get("user_token"), calculation_id):
        return jsonify({"detail": "Calculation not found"}), HTTPStatus.NOT_FOUND
    return "", HTTPStatus.NO_CONTENT


@app.post("/api/calculations/<calculation_id>/duplicate")
def duplicate_calculation(calculation_id: str):
    copy = calculation_store.duplicate_calculation(session.get("user_token"), calculation_id, uuid4().hex)
    if copy is None:
        return jsonify({"detail": "Calculation not found"}), HTTPStatus.NOT_FOUND
    return jsonify(copy), HTTPStatus.CREATED


@app.delete("/api/calculations")
def clear_calculations():
    calculation_store.clear_calculations(session.get("user_token"))
    return "", HTTPStatus.NO_CONTENT


@app.get("/api/presets")
def presets():
    bank = request.args.get("bank")
    selected = get_presets_by_bank(bank) if bank else DEFAULT_PRESETS
    return jsonify(to_jsonable(selected))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting credit calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
