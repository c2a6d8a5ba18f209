from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# HTTP client debug logs off
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


# ✅ middlewares
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ routers
from routers import (
    auth, students, staff,
    attendance, attendance_dashboard,
    requests, behavior, observations, referrals, guidance,
    exit_permissions, appointments, points, parents,
    notifications, reports,
)
from database.db import init_models

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ request latency (X-Latency-Ms response header)
app.add_middleware(TimingMiddleware)

# ✅ global error handlers (single JSON error envelope)
add_error_handlers(app)

# ✅ /v1 prefixed routers
app.include_router(auth.router,                 prefix="/v1")
app.include_router(students.router,             prefix="/v1")
app.include_router(staff.router,                prefix="/v1")
app.include_router(attendance.router,           prefix="/v1")
app.include_router(attendance_dashboard.router, prefix="/v1")
app.include_router(requests.router,             prefix="/v1")
app.include_router(behavior.router,             prefix="/v1")
app.include_router(observations.router,         prefix="/v1")
app.include_router(referrals.router,            prefix="/v1")
app.include_router(guidance.router,             prefix="/v1")
app.include_router(exit_permissions.router,     prefix="/v1")
app.include_router(appointments.router,         prefix="/v1")
app.include_router(points.router,               prefix="/v1")
app.include_router(parents.router,              prefix="/v1")
app.include_router(notifications.router,        prefix="/v1")
app.include_router(reports.router,              prefix="/v1")   # ✅ AI reports


# ✅ health check
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}


@app.on_event("startup")
def _create_tables():
    init_models()


# ✅ root
@app.get("/")
def root():
    return {"message": settings.APP_TITLE}
