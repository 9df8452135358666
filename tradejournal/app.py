"""
app.py
------

Flask application exposing the trade journal as a JSON API. The routes
only translate HTTP to calls on the modular components defined
elsewhere in the package (models, database, session, analytics, coach)
so business logic stays out of the presentation layer.

Authentication is handled upstream: the identity provider in front of
this service sets the ``X-User-Id`` header on every authenticated
request.

To run the application:
    1. Install the package (``pip install -e .``).
    2. Execute ``python -m tradejournal.app``.
    3. Call the API on http://localhost:5004.

Note: The Flask development server is intended for local use. For
production deployments consider using a production WSGI server
such as Gunicorn.
"""
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from flask import Flask, Response, jsonify, request

from . import calendar_view, equity
from .analytics import strategy_breakdown
from .coach import TradeCoach
from .config import Config, load_config
from .database import TradeJournalDB
from .errors import (
    AuthRequiredError, ImportDisabledError, JournalError, StoreError, ValidationError,
)
from .export import (
    backup_filename, build_snapshot, import_snapshot, snapshot_to_json, trades_to_csv,
)
from .instruments import (
    COMMON_STOCKS, INDIAN_INDICES, OPTION_TYPES, PSYCHOLOGY_TAGS, SUGGESTED_STRATEGIES,
    build_option_symbol, form_lot_size, next_expiry, toggle_option_type,
)
from .logger import setup_logger
from .models import DailyNote, TradeStatus, parse_trade_form
from .session import JournalSession, SessionRegistry
from .settings import SettingsRepository
from .sizing import calculate_position

USER_HEADER = "X-User-Id"
NO_REPORT_MESSAGE = "No closed trades for today to report!"


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return datetime.now(timezone.utc).date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def _float_arg(name: str, default: float) -> float:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be numeric") from e


def _payload() -> Mapping[str, Any]:
    """Request body as a mapping: JSON object, else form fields."""
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return data


def create_app(
    config: Optional[Config] = None,
    db: Optional[TradeJournalDB] = None,
    coach: Optional[TradeCoach] = None,
    settings: Optional[SettingsRepository] = None,
) -> Flask:
    config = config or load_config()
    log = setup_logger("tradejournal", level=config.log_level, log_file=config.log_file)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    db = db or TradeJournalDB(config.db_path)
    coach = coach or TradeCoach(config.gemini_api_key, model=config.gemini_model)
    settings = settings or SettingsRepository(config.settings_path)
    sessions = SessionRegistry(db, max_sessions=config.max_sessions)
    app.extensions["tradejournal.sessions"] = sessions

    def current_session() -> JournalSession:
        user_id = (request.headers.get(USER_HEADER) or "").strip()
        if not user_id:
            raise AuthRequiredError()
        return sessions.get(user_id)

    def failed(session: JournalSession):
        return jsonify({"error": session.last_error}), 502

    # ---------- errors ----------
    @app.errorhandler(ValidationError)
    def on_validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(AuthRequiredError)
    def on_auth_required(e):
        return jsonify({"error": str(e)}), 401

    @app.errorhandler(ImportDisabledError)
    def on_import_disabled(e):
        return jsonify({"error": str(e)}), 501

    @app.errorhandler(StoreError)
    def on_store_error(e):
        log.error("Store failure: %s", e)
        return jsonify({"error": str(e)}), 502

    @app.errorhandler(JournalError)
    def on_journal_error(e):
        return jsonify({"error": str(e)}), 500

    # ---------- dashboard ----------
    @app.route("/")
    def dashboard():
        s = current_session()
        return jsonify({
            "stats": s.stats().to_dict(),
            "equity_curve": [p.to_dict() for p in s.equity_curve()],
            "recent_trades": [p.to_dict() for p in equity.recent_trades_pnl(s.trades)],
            "monthly": [p.to_dict() for p in s.monthly_pnl()],
            "strategies": strategy_breakdown(s.trades),
        })

    @app.route("/report/daily")
    def report_daily():
        s = current_session()
        report = s.daily_report(_parse_day(request.args.get("date")))
        if report is None:
            return jsonify({"error": NO_REPORT_MESSAGE}), 404
        return jsonify(report.to_dict())

    # ---------- trades ----------
    @app.route("/trades", methods=["GET"])
    def list_trades():
        s = current_session()
        status = (request.args.get("status") or "ALL").strip().upper()
        trades = s.trades
        if status != "ALL":
            try:
                wanted = TradeStatus(status)
            except ValueError as e:
                raise ValidationError(f"Unknown status: {status}") from e
            trades = [t for t in trades if t.status == wanted]
        trades = sorted(trades, key=lambda t: t.entry_datetime, reverse=True)
        return jsonify([t.to_dict() for t in trades])

    @app.route("/trades", methods=["POST"])
    def add_trade():
        s = current_session()
        payload = _payload()
        trade = parse_trade_form(payload)
        if not s.save_trade(trade):
            return failed(s)
        log.info("Trade %s saved for %s", trade.id, s.user_id)
        return jsonify(trade.to_dict()), 201

    @app.route("/trades/<trade_id>", methods=["PUT"])
    def update_trade(trade_id: str):
        s = current_session()
        if s.find_trade(trade_id) is None:
            return jsonify({"error": "Trade not found"}), 404
        payload = _payload()
        trade = parse_trade_form(payload, trade_id=trade_id)
        if not s.save_trade(trade):
            return failed(s)
        return jsonify(trade.to_dict())

    @app.route("/trades/<trade_id>", methods=["DELETE"])
    def delete_trade(trade_id: str):
        s = current_session()
        if not s.delete_trade(trade_id):
            return failed(s)
        return "", 204

    @app.route("/trades/<trade_id>/analyze", methods=["POST"])
    def analyze_trade(trade_id: str):
        s = current_session()
        trade = s.find_trade(trade_id)
        if trade is None:
            return jsonify({"error": "Trade not found"}), 404
        return jsonify({"trade_id": trade_id, "analysis": coach.analyze(trade)})

    # ---------- calendar & notes ----------
    @app.route("/calendar")
    def calendar_month():
        s = current_session()
        today = datetime.now(timezone.utc).date()
        try:
            year = int(request.args.get("year", today.year))
            month = int(request.args.get("month", today.month))
            delta = int(request.args.get("delta", 0))
        except ValueError as e:
            raise ValidationError("year, month and delta must be integers") from e
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        year, month = calendar_view.shift_month(year, month, delta)
        return jsonify(s.calendar(year, month).to_dict())

    @app.route("/calendar/<day>")
    def calendar_day(day: str):
        s = current_session()
        _parse_day(day)
        return jsonify(calendar_view.day_detail(s.trades, s.notes, day))

    @app.route("/notes/<day>", methods=["PUT"])
    def save_note(day: str):
        s = current_session()
        payload = _payload()
        note = DailyNote.from_dict({**payload, "date": day})
        if not s.save_note(note):
            return failed(s)
        return jsonify(note.to_dict())

    # ---------- tools ----------
    @app.route("/calculator")
    def calculator():
        result = calculate_position(
            capital=_float_arg("capital", 100000.0),
            risk_percent=_float_arg("risk_percent", 2.0),
            entry_price=_float_arg("entry_price", 0.0),
            stop_loss=_float_arg("stop_loss", 0.0),
            instrument=request.args.get("instrument", "NIFTY"),
        )
        return jsonify(result.to_dict())

    @app.route("/instruments/expiry")
    def instrument_expiry():
        symbol = (request.args.get("symbol") or "").strip().upper()
        if not symbol:
            raise ValidationError("symbol query param required")
        expiry = next_expiry(symbol, _parse_day(request.args.get("date")))
        return jsonify({
            "symbol": symbol,
            "expiry_date": expiry.isoformat() if expiry else None,
            "lot_size": form_lot_size(symbol),
        })

    @app.route("/instruments/suggestions")
    def instrument_suggestions():
        return jsonify({
            "indices": INDIAN_INDICES,
            "stocks": COMMON_STOCKS,
            "option_types": OPTION_TYPES,
            "strategies": SUGGESTED_STRATEGIES,
            "psychology_tags": PSYCHOLOGY_TAGS,
        })

    @app.route("/instruments/symbol")
    def instrument_symbol():
        option_type = (request.args.get("option_type") or "").strip().upper()
        if option_type not in OPTION_TYPES:
            raise ValidationError(f"option_type must be one of {', '.join(OPTION_TYPES)}")
        underlying = (request.args.get("underlying") or "").strip()
        if underlying:
            symbol = build_option_symbol(underlying, option_type, request.args.get("strike", ""))
        else:
            symbol = toggle_option_type((request.args.get("symbol") or "").upper(), option_type)
        return jsonify({"symbol": symbol})

    # ---------- settings ----------
    @app.route("/settings", methods=["GET"])
    def get_settings():
        return jsonify(settings.snapshot())

    @app.route("/settings", methods=["PATCH"])
    def update_settings():
        payload = _payload()
        try:
            if "theme" in payload:
                settings.set_theme(payload["theme"])
            if "themeColor" in payload or "fontFamily" in payload:
                settings.update_app_settings(
                    theme_color=payload.get("themeColor"),
                    font_family=payload.get("fontFamily"),
                )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return jsonify(settings.snapshot())

    # ---------- export / import ----------
    @app.route("/export", methods=["GET"], endpoint="export")
    def export_trades():
        s = current_session()
        return Response(
            trades_to_csv(s.trades),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=trades.csv"},
        )

    @app.route("/export/json", methods=["GET"])
    def export_json():
        s = current_session()
        snapshot = build_snapshot(
            settings.snapshot(), s.trades, s.notes, user={"name": s.user_id},
        )
        return Response(
            snapshot_to_json(snapshot),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={backup_filename()}"},
        )

    @app.route("/import", methods=["POST"])
    def import_data():
        import_snapshot(request.get_data(as_text=True))
        return "", 204

    return app


# Run directly
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5004, debug=True, use_reloader=False)
