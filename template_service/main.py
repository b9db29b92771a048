import logging
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from template_service.core.config import Settings, settings
from template_service.core.errors import TemplateServiceError
from template_service.core.github import GitHubArchiveClient
from template_service.core.logging import configure_logging
from template_service.core.progress import LoggingProgressObserver
from template_service.core.ratelimit import FixedWindowRateLimiter
from template_service.core.registry import TemplateRegistry
from template_service.core.service import TemplateService
from template_service.api.routes import router as api_router

configure_logging(settings.log_level)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    log.info("Starting template service, templates: %s",
             ", ".join(app.state.template_service.registry.names))
    yield
    log.info("Shutting down template service...")


async def template_error_handler(request: Request, exc: TemplateServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "message": f"Provide an array of template names in the body ({problems})",
        },
    )


def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or settings
    app = FastAPI(
        title=cfg.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=cfg.rate_limit_max_requests,
        window_seconds=cfg.rate_limit_window_seconds,
    )
    app.state.template_service = TemplateService(
        registry=TemplateRegistry.from_names(cfg.templates),
        client=GitHubArchiveClient(
            archive_url=cfg.upstream_archive_url,
            timeout=cfg.upstream_timeout,
            token=cfg.github_token,
        ),
        observers=[LoggingProgressObserver()],
        compression_level=cfg.compression_level,
        stream_archives=cfg.stream_archives,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_exception_handler(TemplateServiceError, template_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(api_router)
    return app


app = create_app()


def main() -> None:
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
