from routers.devices import router as devices_router
from routers.jobs import router as jobs_router
from routers.notifications import router as notifications_router
from routers.prescriptions import router as prescriptions_router
from routers.reminders import router as reminders_router

__all__ = [
    "devices_router",
    "jobs_router",
    "notifications_router",
    "prescriptions_router",
    "reminders_router",
]
