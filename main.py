import os
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  (registers tables on Base.metadata)
from config import CORS_ORIGINS, LOG_LEVEL
from database import Base, engine
from routers import (
    devices_router,
    jobs_router,
    notifications_router,
    prescriptions_router,
    reminders_router,
)
from services.push import FirebaseDelivery, init_firebase

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create all tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="DoseAlert API",
    description="Prescription dosage schedules and medication reminder push delivery",
    version="1.0.0",
)

# ─── Initialize Firebase Admin SDK (once) ─────────────────
app.state.delivery = FirebaseDelivery(init_firebase())

logs_path = os.path.join(os.path.dirname(__file__), "logs")
os.makedirs(logs_path, exist_ok=True)
error_log_file = os.path.join(logs_path, "errors.log")
error_logger = logging.getLogger("dosealert.errors")
if not error_logger.handlers:
    error_logger.setLevel(logging.ERROR)
    fh = logging.FileHandler(error_log_file, encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    error_logger.addHandler(fh)
    error_logger.propagate = False

cors_origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
allow_any_origin = "*" in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_any_origin else cors_origins,
    # Browsers reject wildcard+credentials; keep credentials off for bearer-token API calls.
    allow_credentials=False if allow_any_origin else True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(prescriptions_router)
app.include_router(reminders_router)
app.include_router(devices_router)
app.include_router(notifications_router)
app.include_router(jobs_router)


@app.middleware("http")
async def _capture_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:  # pragma: no cover
        error_logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", tags=["Health"])
def health_check():
    return {
        "status": "ok",
        "service": "DoseAlert API",
        "version": "1.0.0",
        "push_enabled": app.state.delivery.available,
    }
