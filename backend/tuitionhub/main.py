"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the tuition backend.
Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses.

Endpoints implemented:
- POST /tuitions
- GET /tuitions/codes/check
- GET /tuitions/unused-codes
- GET /tuitions/public/{code}
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services, repositories
from .schemas import TuitionIn, PublicTuitionOut, CodeCheckOut
from .config import settings

app = FastAPI(title="Tuition Marketplace API")
logger = logging.getLogger("tuitionhub.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps local dashboard frontends working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _request_log_line(request: Request, req_id: str, started: float, **extra) -> str:
    fields = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(fields, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    # only tuition routes are logged
    logged = request.url.path.startswith("/tuitions")
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        if logged:
            logger.exception("request_failed %s", _request_log_line(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if logged:
        logger.info("request_done %s", _request_log_line(request, req_id, started, status_code=response.status_code))
    return response


@app.post('/tuitions', status_code=201)
def create_tuition(payload: TuitionIn, db: Session = Depends(get_session)):
    """Post a new tuition.

    When `code` is omitted a code is allocated (`ST110`.. gap-filling
    first, then sequential). A manual code that is already taken is
    rejected with 400; a duplicate that survives the allocation retries
    is reported as 409.
    """
    svc = services.TuitionService(db)
    data = payload.model_dump(exclude={'code'})
    try:
        tuition, code = svc.create_tuition(data, code=payload.code)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except repositories.DuplicateTuitionCode:
        raise HTTPException(
            status_code=409,
            detail='Tuition code already exists. This might be a race condition. '
                   'Please try again or specify a different code.',
        )
    return {
        'success': True,
        'message': 'Tuition added successfully',
        'tuition': tuition.model_dump(),
        'generated_code': code,
    }


@app.get('/tuitions/codes/check', response_model=CodeCheckOut)
def check_code(code: str, db: Session = Depends(get_session)):
    """Normalize `code` (adds the `ST` prefix) and report whether it is free."""
    if not code.strip():
        raise HTTPException(status_code=400, detail='code required')
    return services.TuitionService(db).is_code_available(code)


@app.get('/tuitions/unused-codes')
def unused_codes(db: Session = Depends(get_session)):
    """Report used codes and the first unused codes in the report window."""
    report = services.TuitionService(db).unused_code_report()
    return {'success': True, 'data': report}


@app.get('/tuitions/public/{code}', response_model=PublicTuitionOut)
def public_tuition(code: str, db: Session = Depends(get_session)):
    """Look up a tuition by code for public sharing; guardian details are omitted."""
    tuition = services.TuitionService(db).get_public(code)
    if not tuition:
        raise HTTPException(status_code=404, detail='Tuition not found')
    return tuition.model_dump()


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
