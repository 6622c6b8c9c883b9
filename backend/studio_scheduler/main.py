import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from starlette.middleware.base import BaseHTTPMiddleware

from .api.deps import ServiceContainer
from .api.main import api_router
from .core.config import settings
from .core.observability import get_logger, set_correlation_id, setup_structured_logging
from .domain.scheduling.repositories.collaborators import StudioSchedulerGateway

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Correlates each request with an id and logs its start, end and duration."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        request_fields = {
            "method": request.method,
            "path": request.url.path,
            "correlation_id": correlation_id,
        }
        started = time.perf_counter()
        logger.info(
            "Request started",
            **request_fields,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                **request_fields,
                duration_seconds=round(time.perf_counter() - started, 6),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

        response.headers[CORRELATION_HEADER] = correlation_id
        logger.info(
            "Request completed",
            **request_fields,
            status_code=response.status_code,
            duration_seconds=round(time.perf_counter() - started, 6),
        )
        return response


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Application started",
        project_name=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
        api_version=settings.API_V1_STR,
    )
    yield
    logger.info("Shutting down application")


def create_app(gateway: StudioSchedulerGateway | None = None) -> FastAPI:
    """Build the API; ``gateway`` defaults to an empty in-memory collaborator."""
    setup_structured_logging()

    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Schedule structure engine for studio production jobs.",
        version="1.0.0",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    application.state.services = ServiceContainer(gateway)
    application.add_middleware(ObservabilityMiddleware)
    application.include_router(api_router, prefix=settings.API_V1_STR)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
