from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from http import HTTPStatus
from typing import Optional
import logging

from string_analyzer.api.routes import router
from string_analyzer.config import Settings, get_settings
from string_analyzer.errors import StringAnalyzerError, UnprocessableError
from string_analyzer.storage import RecordStore, create_store

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def is_wrong_value_type(exc: RequestValidationError) -> bool:
    """True when the body had a `value` field that was not a string"""
    return any(
        tuple(error["loc"]) == ("body", "value") and error["type"] != "missing"
        for error in exc.errors()
    )


def create_app(store: Optional[RecordStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.
    A store passed in is used as is; otherwise one is chosen from settings on startup.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="String Analyzer Service",
        description="Analyze, store and filter strings by their computed properties",
        version="1.0.0",
    )
    app.state.store = store

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup():
        if app.state.store is None:
            logger.info("Selecting storage backend...")
            app.state.store = create_store(settings)
        logger.info(f"Storage backend ready: {app.state.store.name}")

    app.include_router(router, tags=["strings"])

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": "String Analyzer Service",
            "version": "1.0.0",
            "endpoints": {
                "POST /strings": "Analyze and store a string",
                "GET /strings/{string_value}": "Get specific string analysis",
                "GET /strings": "Get all strings with optional filters",
                "GET /strings/filter-by-natural-language": "Filter using natural language",
                "DELETE /strings/{string_value}": "Delete a string",
                "GET /health": "Storage backend and record count",
            },
        }

    # Domain error handler
    @app.exception_handler(StringAnalyzerError)
    async def string_analyzer_error_handler(request: Request, exc: StringAnalyzerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Validation error handler
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        if is_wrong_value_type(exc):
            error = UnprocessableError('"value" must be a string')
            return JSONResponse(status_code=error.status_code, content=error.to_dict())

        errors = {}
        for error in exc.errors():
            field = error["loc"][-1]
            errors[str(field)] = error["msg"]

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Bad Request",
                "message": "Invalid request body or missing 'value' field",
                "details": errors,
            },
        )

    # HTTPException handler (unknown routes, wrong methods)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": HTTPStatus(exc.status_code).phrase, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    # Generic error handler
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    return app


settings = get_settings()
configure_logging(settings.log_level)
app = create_app(settings=settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("string_analyzer.main:app", host=settings.host, port=settings.port)
