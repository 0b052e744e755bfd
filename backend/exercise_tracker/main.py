"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the exercise tracker.
Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses. Domain errors raised by services
are translated into responses by the exception handlers registered
below.

Endpoints implemented:
- GET /
- GET /health
- POST /api/exercise/new-user
- POST /api/exercise/add
- GET /api/exercise/log
"""

from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, HTMLResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as SchemaValidationError
from sqlmodel import Session
from typing import Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services
from .config import settings
from .errors import TrackerError, ValidationError
from .schemas import ExerciseIn, ExerciseOut, LogOut, NewUserIn, UserOut

app = FastAPI(title="Exercise Tracker API")
logger = logging.getLogger("exercise_tracker.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Browser clients post the landing-page forms from other origins.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _request_record(request: Request, req_id: str, started: float, **extra) -> str:
    """Serialise one access-log record for an `/api` request."""
    record = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(record, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    logged = request.url.path.startswith("/api")
    try:
        response = await call_next(request)
    except Exception:
        if logged:
            logger.exception("request_failed %s", _request_record(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if logged:
        logger.info("request_done %s", _request_record(request, req_id, started, status_code=response.status_code))
    return response


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    return JSONResponse(status_code=exc.status_code, content=exc.content)


def _first_validation_message(errors) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query")]
    msg = first.get("msg", "Invalid request")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return PlainTextResponse(_first_validation_message(exc.errors()), status_code=400)


@app.exception_handler(SchemaValidationError)
async def schema_validation_handler(request: Request, exc: SchemaValidationError):
    return PlainTextResponse(_first_validation_message(exc.errors()), status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return PlainTextResponse("not found", status_code=404)
    return PlainTextResponse(str(exc.detail or "Internal Server Error"), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None) or 500
    if not isinstance(status, int):
        status = 500
    logger.error("unhandled error on %s: %r", request.url.path, exc)
    return PlainTextResponse(str(exc) or "Internal Server Error", status_code=status)


async def read_fields(request: Request) -> dict:
    """Return the request body fields from a JSON or form-encoded body.

    JSON numbers and booleans are turned into text so that `{"duration": 30}`
    behaves like the form value `duration=30`.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        raw = await request.body()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return {k: (str(v) if isinstance(v, (int, float, bool)) else v) for k, v in data.items()}
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


@app.post('/api/exercise/new-user', response_model=UserOut)
def new_user(fields: dict = Depends(read_fields), db: Session = Depends(get_session)):
    """Register a username and return its generated identifier.

    A blank username answers 400 with "Please enter a valid username." and
    a duplicate answers 409 with "Username already taken...".
    """
    payload = NewUserIn(**fields)
    user = services.UserService(db).register(payload.username)
    return {'username': user.username, 'id': user.user_id}


@app.post('/api/exercise/add', response_model=ExerciseOut)
def add_exercise(fields: dict = Depends(read_fields), db: Session = Depends(get_session)):
    """Append an exercise to a user's log.

    Error bodies: `{"msg": ...}` for an unknown user, `{"Missing": [...]}`
    for absent fields and `{"Error": [...]}` for every failed format check.
    """
    payload = ExerciseIn(**fields)
    svc = services.ExerciseService(db)
    return svc.add(payload.userId, payload.description, payload.duration, payload.date)


@app.get('/api/exercise/log', response_model=LogOut)
def exercise_log(
    userId: Optional[str] = None,
    date_from: Optional[str] = Query(default=None, alias="from"),
    date_to: Optional[str] = Query(default=None, alias="to"),
    limit: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """Return a user's exercises sorted by date.

    `from` and `to` are inclusive bounds (a bare-day `to` covers the whole
    day) and `limit` keeps the first N entries after filtering.
    """
    svc = services.ExerciseService(db)
    return svc.get_log(userId, date_from, date_to, limit)


@app.get("/", response_class=HTMLResponse)
def home():
    """Landing page with forms for the three API operations."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <meta charset="UTF-8" />
      <title>Exercise Tracker</title>
      <style>
        body { font-family: Arial, sans-serif; margin: 32px; }
        form { margin-bottom: 24px; }
        input { display: block; margin: 6px 0; padding: 4px; width: 280px; }
        .card { max-width: 640px; padding: 16px; border: 1px solid #ddd; border-radius: 8px; }
      </style>
    </head>
    <body>
      <div class="card">
        <h1>Exercise Tracker</h1>
        <form action="/api/exercise/new-user" method="post">
          <h3>Create a New User</h3>
          <p><code>POST /api/exercise/new-user</code></p>
          <input name="username" type="text" placeholder="username" />
          <input type="submit" value="Submit" />
        </form>
        <form action="/api/exercise/add" method="post">
          <h3>Add exercises</h3>
          <p><code>POST /api/exercise/add</code></p>
          <input name="userId" type="text" placeholder="userId*" />
          <input name="description" type="text" placeholder="description*" />
          <input name="duration" type="text" placeholder="duration* (mins.)" />
          <input name="date" type="text" placeholder="date (yyyy-mm-dd)" />
          <input type="submit" value="Submit" />
        </form>
        <p><strong>GET user's exercise log:</strong>
          <code>GET /api/exercise/log?userId=&lt;userId&gt;[&amp;from][&amp;to][&amp;limit]</code></p>
        <p><strong>[ ]</strong> = optional, <strong>from, to</strong> = dates (yyyy-mm-dd); <strong>limit</strong> = number</p>
      </div>
    </body>
    </html>
    """


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
