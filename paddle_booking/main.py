# paddle_booking/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paddle_booking.config import ALLOWED_ORIGINS
from paddle_booking.errors import BookingError
from paddle_booking.logging_config import setup_logging
from paddle_booking.middleware import RequestIDMiddleware
from paddle_booking.routes._helpers import booking_error_handler, unhandled_error_handler
from paddle_booking.routes.auth import router as auth_router
from paddle_booking.routes.catalog import router as catalog_router
from paddle_booking.routes.health import router as health_router
from paddle_booking.routes.jobs import jobs_router, liaisons_router
from paddle_booking.routes.metrics import router as metrics_router
from paddle_booking.routes.reservations import router as reservations_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Paddleboat Booking API",
    description="Reservations, delivery jobs and sessions for the paddleboat rental service",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, unhandled_error_handler)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(catalog_router, tags=["Catalog"])
app.include_router(reservations_router, prefix="/reservations", tags=["Reservations"])
app.include_router(liaisons_router, prefix="/liaisons", tags=["Liaisons"])
app.include_router(jobs_router, prefix="/jobs", tags=["Jobs"])

logger.info("app_initialized", routes=len(app.routes))
