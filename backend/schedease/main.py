from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from schedease.api.routes import enrollments, health, instructors, schedule_requests, schedules
from schedease.core.config import get_settings
from schedease.core.exceptions import AppError
from schedease.core.logging import configure_logging
from schedease.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from schedease.db.bootstrap import ensure_schema
from schedease.db.session import engine

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    ensure_schema(engine)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
if settings.enable_request_logging:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/schedules", tags=["schedules"])
app.include_router(
    schedule_requests.router,
    prefix=f"{settings.api_prefix}/schedule-requests",
    tags=["schedule-requests"],
)
app.include_router(enrollments.router, prefix=f"{settings.api_prefix}/enrollments", tags=["enrollments"])
app.include_router(instructors.router, prefix=f"{settings.api_prefix}/instructors", tags=["instructors"])
