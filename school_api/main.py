# school_api/main.py
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from school_api.api.routers import academic as academic_router
from school_api.api.routers import attendance as attendance_router
from school_api.api.routers import audit as audit_router
from school_api.api.routers import auth as auth_router
from school_api.api.routers import cbc as cbc_router
from school_api.api.routers import classes as classes_router
from school_api.api.routers import finance as finance_router
from school_api.api.routers import finance_dashboard as finance_dashboard_router
from school_api.api.routers import grading as grading_router
from school_api.api.routers import lessons as lessons_router
from school_api.api.routers import parents as parents_router
from school_api.api.routers import reconciliation as reconciliation_router
from school_api.api.routers import schemes as schemes_router
from school_api.api.routers import scores as scores_router
from school_api.api.routers import setup as setup_router
from school_api.api.routers import students as students_router
from school_api.api.routers import subjects as subjects_router
from school_api.api.routers import teachers as teachers_router
from school_api.core.config import settings
from school_api.core.errors import register_exception_handlers
from school_api.core.logging import setup_logging
from school_api.core.rate_limit import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="School Management API", version="0.3.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.1f}ms)")
        return response

    # Onboarding and identity
    app.include_router(setup_router.router, prefix=settings.API_PREFIX)
    app.include_router(auth_router.router, prefix=settings.API_PREFIX)

    # Academic core
    app.include_router(academic_router.router, prefix=settings.API_PREFIX)
    app.include_router(classes_router.router, prefix=settings.API_PREFIX)
    app.include_router(subjects_router.router, prefix=settings.API_PREFIX)
    app.include_router(grading_router.router, prefix=settings.API_PREFIX)
    # must precede teachers, whose /teachers/{teacher_id}/... paths overlap
    app.include_router(schemes_router.router, prefix=settings.API_PREFIX)
    app.include_router(teachers_router.router, prefix=settings.API_PREFIX)
    app.include_router(students_router.router, prefix=settings.API_PREFIX)

    # Assessment
    app.include_router(scores_router.router, prefix=settings.API_PREFIX)
    app.include_router(cbc_router.router, prefix=settings.API_PREFIX)
    app.include_router(lessons_router.router, prefix=settings.API_PREFIX)
    app.include_router(attendance_router.router, prefix=settings.API_PREFIX)

    # Financial
    app.include_router(finance_router.router, prefix=settings.API_PREFIX)
    app.include_router(finance_dashboard_router.router, prefix=settings.API_PREFIX)
    app.include_router(reconciliation_router.router, prefix=settings.API_PREFIX)

    app.include_router(parents_router.router, prefix=settings.API_PREFIX)
    app.include_router(audit_router.router, prefix=settings.API_PREFIX)

    @app.get("/healthz")
    def health():
        return {"ok": True}

    logger.info(f"App created ({settings.ENV}) with {len(app.routes)} routes")
    return app


app = create_app()
