import os
from flask_socketio import SocketIO, join_room, leave_room, emit
from flask import request

from agency_finance.utils.logger import get_logger

log = get_logger(__name__)

_raw = os.getenv("SOCKETIO_CORS_ORIGINS", "*").strip()
CORS_ORIGINS = "*" if _raw == "*" else [o.strip() for o in _raw.split(",") if o.strip()]

socketio = SocketIO(
    cors_allowed_origins=CORS_ORIGINS,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE", "eventlet"),
)


def period_room(year, month) -> str:
    return f"billing:{int(year)}-{int(month):02d}"


def broadcast_billing_updated(year: int, month: int, payload: dict) -> None:
    """Tell everyone looking at the period's matrix that a cell changed."""
    socketio.emit(
        "billing_updated",
        {"fiscal_year": year, "fiscal_month": month, **payload},
        to=period_room(year, month),
    )


def init_socketio(app):
    socketio.init_app(app)

    @socketio.on("connect")
    def handle_connect():
        log.debug("socket connect origin=%s", request.headers.get("Origin"))
        emit("connected", {"ok": True})

    @socketio.on("disconnect")
    def handle_disconnect():
        log.debug("socket disconnect")

    @socketio.on("join_period")
    def on_join(data):
        data = data or {}
        year, month = data.get("fiscal_year"), data.get("fiscal_month")
        if not year or not month:
            emit("error", {"error": "fiscal_year and fiscal_month required"})
            return
        room = period_room(year, month)
        join_room(room)
        emit("joined", {"room": room})

    @socketio.on("leave_period")
    def on_leave(data):
        data = data or {}
        year, month = data.get("fiscal_year"), data.get("fiscal_month")
        if not year or not month:
            return
        room = period_room(year, month)
        leave_room(room)
        emit("left", {"room": room})
