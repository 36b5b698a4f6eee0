import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from moveops.config import settings, setup_logging
from moveops.db import create_db_and_tables
from moveops.error import AppError
from moveops.routers import auth, deals, employees, materials, moves

setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("service started")
    yield
    logger.info("service stopped")


app = FastAPI(title="moveops - Move Execution", lifespan=lifespan)

app.include_router(auth.router)
app.include_router(moves.router)
app.include_router(employees.router)
app.include_router(deals.router)
app.include_router(materials.router)


@app.get("/health")
def health():
    return {"ok": True}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        content = {"error": detail.get("message"), "code": detail.get("code")}
    else:
        content = {"error": detail, "code": "HTTP_ERROR"}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "Request validation failed",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # raw driver message, the transaction has already been rolled back
    message = str(getattr(exc, "orig", None) or exc)
    logger.error("storage error on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=500, content={"error": message, "code": "STORAGE_ERROR"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc), "code": "INTERNAL_ERROR"})
