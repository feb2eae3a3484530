import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from booking_api.config import get_settings
from booking_api.controllers.availability import router as availability_router
from booking_api.controllers.bookings import router as bookings_router
from booking_api.controllers.events import router as events_router
from booking_api.controllers.health import router as health_router
from booking_api.errors import register_exception_handlers
from booking_api.lifespan import lifespan
from booking_api.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="Booking API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("booking_api.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(events_router)
app.include_router(bookings_router)
app.include_router(availability_router)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
