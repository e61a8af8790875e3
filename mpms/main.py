# mpms/main.py

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Роутеры
from mpms.api.auth import router as auth_router
from mpms.api.comment import router as comment_router
from mpms.api.project import router as project_router
from mpms.api.report import router as report_router
from mpms.api.sprint import router as sprint_router
from mpms.api.task import router as task_router
from mpms.api.user import router as user_router

from mpms.core.exceptions import BaseAppException
from mpms.core.permissions import Actor
from mpms.core.settings import Settings, get_settings
from mpms.database import build_engine, build_session_factory
from mpms.dependencies import get_optional_actor
from mpms.models import Base
from mpms.schemas.response import ApiResponse, ErrorResponse, envelope

logger = logging.getLogger("MPMS.App")

ROUTERS = (auth_router, user_router, project_router, sprint_router, task_router, comment_router, report_router)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    stack: Optional[str] = None,
) -> JSONResponse:
    body = ErrorResponse(status_code=status_code, message=message, errors=errors, stack=stack)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        message = err.get("msg", "Invalid value")
        # pydantic добавляет префикс к ValueError из валидаторов
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"path": ".".join(str(part) for part in err.get("loc", ())), "message": message})
    return errors


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "Validation failed", errors=_validation_errors(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return error_response(409, "Resource already exists or violates a constraint")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return error_response(404, f"Route {request.url.path} not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        if settings.is_development:
            return error_response(500, str(exc) or "Something went wrong", stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        return error_response(500, "Something went wrong")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Собирает приложение: settings, engine/session factory в app.state, роутеры, обработчики ошибок.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.is_development else logging.INFO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting MPMS API ({settings.ENV})")
        Base.metadata.create_all(bind=app.state.engine)
        yield
        app.state.engine.dispose()
        logger.info("Stopping MPMS API")

    app = FastAPI(
        title="MPMS API",
        version="1.0.0",
        description="Minimal project management system: projects, sprints, tasks, comments and reports",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Middlewares
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    for router in ROUTERS:
        app.include_router(router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["Health"], response_model=ApiResponse[Dict[str, Any]])
    def root(actor: Optional[Actor] = Depends(get_optional_actor)):
        data = {"authenticated": actor is not None}
        if actor is not None:
            data["userId"] = actor.id
            data["role"] = actor.role.value
        return envelope("Welcome to MPMS API", data)

    @app.get(f"{settings.API_PREFIX}/health", tags=["Health"], response_model=ApiResponse[Dict[str, Any]])
    def health():
        return envelope("MPMS API is running", {"status": "ok", "env": settings.ENV})

    register_exception_handlers(app, settings)
    return app


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "mpms.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=get_settings().is_development,
    )
