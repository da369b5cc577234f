import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import auth, lab_tests, recommendations, supplements
from .api.envelope import error
from .config import cors_origins
from .db import init_db
from .exceptions import ServiceError, ValidationFailure
from .logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    await init_db()
    logger.info("Database initialised")
    yield


app = FastAPI(title="Nova Health Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(_: Request, exc: ValidationFailure):
    return JSONResponse(status_code=exc.status_code, content=error(exc.message, exc.errors))


@app.exception_handler(ServiceError)
async def service_error_handler(_: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("Service error: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=error(exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error("Invalid request", errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error("Server error"))


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(lab_tests.router, prefix="/api/lab-tests", tags=["lab_tests"])
app.include_router(supplements.router, prefix="/api/supplements", tags=["supplements"])
app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])


@app.get("/")
async def root():
    return {"status": "ok", "message": "Nova Health Backend"}


@app.get("/health")
async def health():
    return {"status": "OK", "message": "Server is running"}
