# marketplace/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.authz_errors import http_exception_handler
from marketplace.config import settings
from marketplace.database import Base, engine
from marketplace.logging_config import setup_logging

from marketplace.routers import admin_businesses
from marketplace.routers import admin_payments
from marketplace.routers import bookings
from marketplace.routers import business
from marketplace.routers import cars
from marketplace.routers import customer
from marketplace.routers import employees
from marketplace.routers import public
from marketplace.routers import services
from marketplace.routers import subscription

logger = logging.getLogger(__name__)


# -------------------------------------------------
# APP SETUP
# -------------------------------------------------
app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)

# Routers
app.include_router(business.router)
app.include_router(services.router)
app.include_router(cars.router)
app.include_router(employees.router)
app.include_router(bookings.router)
app.include_router(subscription.router)
app.include_router(customer.router)
app.include_router(public.router)
app.include_router(admin_businesses.router)
app.include_router(admin_payments.router)


# -------------------------------------------------
# HEALTH
# -------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


# -------------------------------------------------
# STARTUP
# -------------------------------------------------
@app.on_event("startup")
def startup():
    setup_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    logger.info("%s %s started (trial=%s days)", settings.project_name, settings.api_version, settings.trial_days)
