"""
API routes for the configuration editor
"""
from fastapi import APIRouter, HTTPException, Depends
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

from app.api.schemas import ConnectRequest, SettingsResponse, SubmitRequest, SubmitResponse
from app.api.security import require_api_key
from app.core.errors import ConnectivityError, PersistenceError
from app.services.baseline_store import Baseline, SettingRow
from app.services.outcomes import (
    Accepted,
    NotConnected,
    PersistenceFailed,
    RenameRejected,
    StructuralMismatch,
    ValidationRejected,
)
from app.services.session_controller import SessionContext, SessionController

logger = logging.getLogger(__name__)

# Create router
api_router = APIRouter(dependencies=[Depends(require_api_key)])

# Global services (will be injected)
controller: Optional[SessionController] = None
session_context: Optional[SessionContext] = None

OUTCOME_STATUS = {
    RenameRejected: 409,
    StructuralMismatch: 409,
    ValidationRejected: 422,
    NotConnected: 503,
    PersistenceFailed: 500,
}


def set_services(ctrl: SessionController, ctx: SessionContext):
    """Set global services"""
    global controller, session_context
    controller = ctrl
    session_context = ctx


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_services():
    if controller is None or session_context is None:
        raise HTTPException(status_code=503, detail={"outcome": "not_ready", "message": "Editor not available"})


def _rows_out(rows) -> List[Dict[str, Any]]:
    return [{"key": row.key, "value": str(row.value)} for row in rows]


def _settings_payload(baseline: Optional[Baseline]) -> Dict[str, Any]:
    rows = _rows_out(baseline) if baseline is not None else []
    return {
        "settings": rows,
        "count": len(rows),
        "state": session_context.state.value,
        "timestamp": _now(),
    }


def describe_outcome(outcome) -> str:
    """User-facing message for a submit outcome."""
    if isinstance(outcome, Accepted):
        return "Configuration settings updated successfully."
    if isinstance(outcome, RenameRejected):
        return "Configuration Setting names cannot be changed. The edited name(s) were reverted."
    if isinstance(outcome, ValidationRejected):
        return f"Invalid value for '{outcome.key}'. Please enter a number between 0 and 99,999,999.99."
    if isinstance(outcome, StructuralMismatch):
        return "The set of settings changed. Local edits were discarded and the settings reloaded."
    if isinstance(outcome, NotConnected):
        return outcome.reason
    if isinstance(outcome, PersistenceFailed):
        return f"Failed to save settings. {outcome.reason}"
    return "Unknown outcome"


# Session Routes
@api_router.post("/session/connect", response_model=SettingsResponse)
async def connect(request: ConnectRequest):
    """Open a database connection and load the settings"""
    _require_services()
    try:
        baseline = controller.connect(session_context, request.database_url)
    except ConnectivityError as e:
        logger.error(f"Connection error: {e.message}")
        raise HTTPException(status_code=503, detail={"outcome": "not_connected", "message": e.message})
    except PersistenceError as e:
        logger.error(f"Failed to load settings: {e.message}")
        raise HTTPException(status_code=500, detail={"outcome": "persistence_failed", "message": e.message})
    return _settings_payload(baseline)


@api_router.get("/session/status")
async def get_session_status():
    """Get editor session status"""
    _require_services()
    return {
        "state": session_context.state.value,
        "connected": session_context.connection.is_connected,
        "count": len(session_context.baseline) if session_context.baseline is not None else 0,
        "timestamp": _now(),
    }


# Settings Routes
@api_router.get("/settings", response_model=SettingsResponse)
async def get_settings():
    """Get the settings as last loaded from the database"""
    _require_services()
    if session_context.baseline is None:
        return await reload_settings()
    return _settings_payload(session_context.baseline)


@api_router.post("/settings/reload", response_model=SettingsResponse)
async def reload_settings():
    """Discard local state and reload the settings"""
    _require_services()
    try:
        baseline = controller.load(session_context)
    except ConnectivityError as e:
        logger.error(f"Reload error: {e.message}")
        raise HTTPException(status_code=503, detail={"outcome": "not_connected", "message": e.message})
    except PersistenceError as e:
        logger.error(f"Reload error: {e.message}")
        raise HTTPException(status_code=500, detail={"outcome": "persistence_failed", "message": e.message})
    return _settings_payload(baseline)


@api_router.post("/settings/submit", response_model=SubmitResponse)
async def submit_settings(request: SubmitRequest):
    """Submit edited settings"""
    _require_services()
    candidates = [SettingRow(key=item.key, value=item.value) for item in request.settings]
    outcome = controller.submit(session_context, candidates)

    payload: Dict[str, Any] = {
        "outcome": outcome.kind,
        "message": describe_outcome(outcome),
        "key": getattr(outcome, "key", None),
        "settings": [],
        "corrected": [],
        "timestamp": _now(),
    }
    if isinstance(outcome, (Accepted, StructuralMismatch)) and outcome.baseline is not None:
        payload["settings"] = _rows_out(outcome.baseline)
    if isinstance(outcome, RenameRejected):
        payload["corrected"] = _rows_out(outcome.corrected)

    if isinstance(outcome, Accepted):
        return payload
    raise HTTPException(status_code=OUTCOME_STATUS[type(outcome)], detail=payload)
