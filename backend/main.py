from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, OperationalError
from database import Base, engine, SessionLocal
from datetime import datetime
import os
import logging
from fastapi.openapi.utils import get_openapi

import config
import models  # noqa: F401  registers every table on Base.metadata
import auth
import routers.alerts as alerts
import routers.audit_log as audit_log
import routers.categories as categories
import routers.clients as clients
import routers.medicine as medicine
import routers.sales_orders as sales_orders
import routers.stock as stock
import routers.users as users
from utils.exceptions import PharmacyError


LOG_DIR = "logs"
os.makedirs(LOG_DIR, exist_ok=True)

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE,
    filemode='a'
)

# Also output logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        auth.ensure_default_admin(db)
    finally:
        db.close()

    if config.SCHEDULER_ENABLED:
        from scheduler import scheduler
        scheduler.start()
        logger.info(f"Scheduler started. Daily alert reconciliation at {config.ALERT_JOB_HOUR:02d}:00 {config.APP_TIMEZONE}")
    yield
    if config.SCHEDULER_ENABLED:
        from scheduler import scheduler
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped.")


app = FastAPI(lifespan=lifespan)


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PharmacyError)
async def pharmacy_error_handler(request: Request, exc: PharmacyError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=409, content={"error": "The operation conflicts with existing data", "code": "CONFLICT"})


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc.orig}", exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"error": "The operation could not be completed, please try again", "code": "TRANSIENT_FAILURE"},
    )


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Pharmacy Back-Office API",
        version="1.0.0",
        description="Medicines, stock ledger, alerts and sales",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(medicine.router)
app.include_router(clients.router)
app.include_router(stock.router)
app.include_router(alerts.router)
app.include_router(sales_orders.router)
app.include_router(audit_log.router)


@app.get("/")
async def test_route():
    return {"message": "Pharmacy back-office API is running"}
