import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from db import init_db
from errors import AppError

# Routers
from routers.attempts import router as attempts_router
from routers.auth import router as auth_router
from routers.exams import router as exams_router
from routers.health import router as health_router

logger = logging.getLogger("exam-authority")
logging.basicConfig(level=logging.INFO)

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Alembic owns the schema; auto-create is a local/dev shortcut.
    if os.getenv("DB_AUTO_CREATE", "0") == "1":
        init_db()
    logger.info("Exam authority API starting")
    yield


app = FastAPI(title="Exam Authority API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "authorization"],
)


def _envelope(message: str, errors=None, data=None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if data:
        body["data"] = {to_camel(k): v for k, v in data.items()}
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    errors = [{"code": exc.reason}] + (exc.errors or [])
    return JSONResponse(status_code=exc.status_code, content=_envelope(exc.message, errors, exc.data))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"code": "validation_failed"}]
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" segment
        loc = [str(p) for p in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc), "detail": err.get("msg", "")})
    return JSONResponse(status_code=400, content=_envelope("Invalid request", errors))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(str(exc.detail), [{"code": "http_error"}]),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_envelope("Internal server error", [{"code": "internal_error"}]))


@app.get("/")
def health_root():
    return {"success": True, "message": "ok"}


app.include_router(auth_router)  # /auth/...
app.include_router(exams_router)  # /exams/...
app.include_router(attempts_router)  # /exams/{id}/attempts, /attempts/...
app.include_router(health_router)  # /health/...
