"""FastAPI application that exposes the meeting timer as a local JSON API."""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from .config import MeetingSettings
from .csv_codec import encode
from .errors import ActivityNotFound, AgendaError, GuardRejected
from .session import MeetingSession

logger = logging.getLogger(__name__)


class ActivityPayload(BaseModel):
    name: str
    planned_minutes: int

    model_config = ConfigDict(extra="forbid")


class ManualUpdate(BaseModel):
    actual_minutes: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")


class ReorderPayload(BaseModel):
    from_index: int
    to_index: int

    model_config = ConfigDict(extra="forbid")


class SettingsPayload(BaseModel):
    meeting_start: Optional[time] = None
    ignore_threshold_seconds: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    settings: Optional[MeetingSettings] = None,
    session: Optional[MeetingSession] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    meeting = session or MeetingSession(settings or MeetingSettings())

    app = FastAPI(title="Meeting Agenda Timer", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.session = meeting

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        meeting.shutdown()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        session: MeetingSession = request.app.state.session
        return {
            "ticker_running": session.ticker_running(),
            "activity_count": len(session.store),
            "ignore_threshold_seconds": session.settings.ignore_seconds,
            "tick_seconds": session.settings.tick_interval.total_seconds(),
        }

    @app.get("/api/state")
    def state(request: Request) -> Dict[str, Any]:
        return request.app.state.session.snapshot()

    @app.post("/api/activities", status_code=201)
    def add_activity(payload: ActivityPayload, request: Request) -> Dict[str, Any]:
        activity = request.app.state.session.add(payload.name, payload.planned_minutes)
        if activity is None:
            raise HTTPException(
                status_code=400,
                detail="Inserisci un nome e una durata maggiore di zero.",
            )
        return activity.to_dict()

    @app.put("/api/activities/{activity_id}")
    def edit_activity(
        activity_id: str, payload: ActivityPayload, request: Request
    ) -> Dict[str, Any]:
        try:
            activity = request.app.state.session.edit(
                activity_id, payload.name, payload.planned_minutes
            )
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return activity.to_dict()

    @app.patch("/api/activities/{activity_id}")
    def update_activity(
        activity_id: str, payload: ManualUpdate, request: Request
    ) -> Dict[str, Any]:
        updates = payload.model_dump(exclude_unset=True)
        if len(updates) != 1:
            raise HTTPException(status_code=400, detail="Specify exactly one field to update.")
        field, value = next(iter(updates.items()))
        if field == "actual_minutes":
            field = "actual_duration"
            value = value * 60 if value is not None else None
        elif value is not None and value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        try:
            activity = request.app.state.session.manual_update(activity_id, field, value)
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return activity.to_dict()

    @app.delete("/api/activities/{activity_id}")
    def delete_activity(activity_id: str, request: Request) -> Dict[str, Any]:
        try:
            request.app.state.session.delete(activity_id)
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return {"deleted": activity_id}

    @app.post("/api/activities/{activity_id}/duplicate", status_code=201)
    def duplicate_activity(activity_id: str, request: Request) -> Dict[str, Any]:
        try:
            activity = request.app.state.session.duplicate(activity_id)
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return activity.to_dict()

    @app.post("/api/activities/{activity_id}/toggle")
    def toggle_activity(activity_id: str, request: Request) -> Dict[str, Any]:
        session: MeetingSession = request.app.state.session
        try:
            result = session.toggle(activity_id)
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return {
            "outcome": result.outcome.value,
            "activity_id": result.activity_id,
            "closed_id": result.closed_id,
            "notice": result.notice,
            "state": session.snapshot(),
        }

    @app.post("/api/activities/reorder")
    def reorder_activities(payload: ReorderPayload, request: Request) -> Dict[str, Any]:
        session: MeetingSession = request.app.state.session
        try:
            session.reorder(payload.from_index, payload.to_index)
        except AgendaError as exc:
            raise _http_error(exc) from exc
        return {"order": [a.id for a in session.store]}

    @app.put("/api/meeting/settings")
    def update_settings(payload: SettingsPayload, request: Request) -> Dict[str, Any]:
        session: MeetingSession = request.app.state.session
        if payload.meeting_start is not None:
            session.set_meeting_start_clock(payload.meeting_start)
        if payload.ignore_threshold_seconds is not None:
            try:
                session.set_ignore_threshold(payload.ignore_threshold_seconds)
            except AgendaError as exc:
                raise _http_error(exc) from exc
        return session.snapshot()

    @app.post("/api/meeting/clear")
    def clear_meeting(request: Request) -> Dict[str, Any]:
        session: MeetingSession = request.app.state.session
        session.clear()
        return session.snapshot()

    @app.post("/api/import/template")
    async def import_template(request: Request) -> Dict[str, Any]:
        text = await _read_text(request)
        result = request.app.state.session.import_template(text)
        return {"imported": result.imported, "skipped": result.skipped}

    @app.post("/api/import/data")
    async def import_data(request: Request) -> Dict[str, Any]:
        text = await _read_text(request)
        result = request.app.state.session.import_data(text)
        return {
            "imported": result.imported,
            "skipped": result.skipped,
            "message": result.message,
        }

    @app.get("/api/export/data")
    def export_data(request: Request) -> Response:
        filename, text = request.app.state.session.export_data()
        return _csv_response(filename, text)

    @app.get("/api/export/template")
    def export_template(request: Request) -> Response:
        filename, text = request.app.state.session.export_template()
        return _csv_response(filename, text)

    @app.get("/api/chart")
    def chart(request: Request) -> Dict[str, Any]:
        filename, points = request.app.state.session.chart()
        return {
            "filename": filename,
            "labels": [p.label for p in points],
            "planned_minutes": [p.planned_minutes for p in points],
            "actual_minutes": [p.actual_minutes for p in points],
        }

    return app


def _http_error(exc: AgendaError) -> HTTPException:
    logger.warning("Rejected request: %s", exc.message)
    if isinstance(exc, ActivityNotFound):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, GuardRejected):
        return HTTPException(status_code=409, detail=exc.message)
    return HTTPException(status_code=400, detail=exc.message)


async def _read_text(request: Request) -> str:
    body = await request.body()
    try:
        return body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Il file deve essere codificato in UTF-8.") from exc


def _csv_response(filename: str, text: str) -> Response:
    return Response(
        content=encode(text),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
