import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, routes
from .assembler import PlanAssembler
from .config import Settings, get_settings
from .database import Database
from .errors import CoachError
from .exercise_library import ExerciseLibrary
from .gateway import ModelGateway
from .planner import Planner
from .store import CoachStore

logger = logging.getLogger(__name__)


def error_response(status_code: int, code: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    content = {"error": {"code": code, "message": message}}
    if details:
        content["error"]["details"] = details
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def coach_error_handler(request: Request, exc: CoachError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return error_response(exc.status_code, exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(x) for x in e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    message = f"{errors[0]['field']}: {errors[0]['message']}" if errors else "Request validation failed"
    return error_response(400, "validation_error", message, {"errors": errors})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, "http_error", str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "server_error", "Server error")


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[ModelGateway] = None,
    exercise_library: Optional[ExerciseLibrary] = None,
) -> FastAPI:
    """Build the API with its services wired in.

    Run with ``uvicorn fitness_coach.main:create_app --factory``.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    database = Database(settings.database_url)
    store = CoachStore(database)
    gateway = gateway or ModelGateway.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting fitness coach API (db: %s)", database.engine.url.render_as_string(hide_password=True))
        database.create_all()
        if app.state.exercise_library is None:
            app.state.exercise_library = ExerciseLibrary.from_csv(settings.exercise_dataset_path)
        yield
        logger.info("Shutting down fitness coach API")
        database.dispose()

    app = FastAPI(title="AI Fitness Coach API", version="0.1.0", lifespan=lifespan)

    # CORS (allow the web client)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store = store
    app.state.gateway = gateway
    app.state.auth = auth.AuthService(settings)
    app.state.planner = Planner(store, gateway, PlanAssembler(store))
    app.state.exercise_library = exercise_library

    app.add_exception_handler(CoachError, coach_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth.router)
    for router in routes.ROUTERS:
        app.include_router(router)

    return app
