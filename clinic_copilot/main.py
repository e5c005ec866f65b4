import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse
from clinic_copilot.exceptions.handlers import (
    application_exception_handler,
    http_exception_handler,
    generic_exception_handler
)
from clinic_copilot.exceptions.errors import ApplicationException
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from clinic_copilot.database.base import Base
from clinic_copilot.database.connection import engine, AsyncSessionLocal

from clinic_copilot.api.v1.routes import auth_router, health_data_router, user_router, backup_router, chat_router
from clinic_copilot.core.config import settings
from clinic_copilot.utils.app_container import build_container

from clinic_copilot.core.logger import get_logger

logger = get_logger("clinic-copilot")

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 FastAPI app is starting...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Application database tables ensured.")

        if getattr(app.state, "container", None) is None:
            app.state.container = build_container(AsyncSessionLocal)
        # pick up a session that survived in this process (e.g. after a reload)
        await app.state.container.auth.restore()

    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise e

    yield

    await engine.dispose()
    logger.info("🛑 FastAPI app is shutting down...")


swagger_ui_parameters = {
    "deepLinking": True,
    "displayRequestDuration": True,
    "tryItOutEnabled": True,
    "filter": True,
    "syntaxHighlight.theme": "arta",
}

if settings.is_development:
    swagger_ui_parameters["persistAuthorization"] = True

app = FastAPI(
    title="Clinic Copilot Backend",
    version=APP_VERSION,
    lifespan=lifespan,
    description="""
    Clinic Copilot backend: personal health tracking with an AI health assistant.

    ## Authentication

    Every endpoint except `/` and `/health` takes a Clerk session token:
    ```
    Authorization: Bearer <your-jwt-token>
    ```
    `POST /api/v1/auth/sign-in` makes the token's user the signed-in user; other
    endpoints refuse tokens that belong to anyone else.

    ## Health assistant

    `POST /api/chat` and `POST /api/chat-summary` relay to OpenRouter and need
    `OPENROUTER_API_KEY` to be set.
    """,
    swagger_ui_parameters=swagger_ui_parameters,
    openapi_components={
        "securitySchemes": {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Clerk session token"
            }
        }
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(health_data_router, prefix="/api/v1")
app.include_router(user_router, prefix="/api/v1")
app.include_router(backup_router, prefix="/api/v1")
app.include_router(chat_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint with development information."""
    return {
        "message": "Clinic Copilot Backend API",
        "docs": "/docs",
        "development_mode": settings.is_development,
        "version": APP_VERSION
    }


@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}


# 404 middleware (only for paths that matched no route)
@app.middleware("http")
async def catch_all_404_middleware(request: Request, call_next):
    response = await call_next(request)
    if response.status_code == 404 and "endpoint" not in request.scope:
        return JSONResponse(
            status_code=404,
            content={"error": "Route not found", "path": str(request.url.path)}
        )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")

    # Convert validation errors to JSON-serializable format
    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input")) if error.get("input") is not None else None
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors,
            "url": str(request.url),
            "method": request.method
        }
    )


# Exception handlers
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

if __name__ == "__main__":
    uvicorn.run(
        "clinic_copilot.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.is_development,
        limit_concurrency=20,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30
    )
