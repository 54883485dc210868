from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from money_tracker.config import get_settings
from money_tracker.db.core import create_db_and_tables
from money_tracker.logging_config import setup_logging, get_logger, RequestLogMiddleware
from money_tracker.routers.common import VALIDATION_MESSAGE
from money_tracker.routers.auth import router as auth_router
from money_tracker.routers.users import router as users_router
from money_tracker.routers.transactions import router as transactions_router
from money_tracker.routers.budgets import router as budgets_router
from money_tracker.routers.savings_goals import router as savings_goals_router
from money_tracker.routers.reports import router as reports_router
from money_tracker.routers.system import router as system_router

setup_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    create_db_and_tables()
    logger.info("Money Tracker API started")
    yield


app = FastAPI(title="Money Tracker API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLogMiddleware)


def _field_name(loc) -> str:
    # ("body", "email") -> "email"; a model-level check has only ("body",)
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


def _clean_message(msg: str) -> str:
    return msg[len("Value error, "):] if msg.startswith("Value error, ") else msg


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), []).append(_clean_message(error.get("msg", "")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": VALIDATION_MESSAGE, "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Server Error"})


app.include_router(system_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
app.include_router(savings_goals_router)
app.include_router(reports_router)


@app.get("/")
def read_root():
    return "Server is running."
