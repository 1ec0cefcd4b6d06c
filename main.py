from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
import os
import logging
from dotenv import load_dotenv

import model  # registers every table on Base.metadata
from db.database import Base, engine, SessionLocal
from utils.exceptions import register_exception_handlers
from utils.token import redis_client

from router.auth_router import router as auth_router
from router.user_router import router as user_router
from router.project_router import router as project_router
from router.task_router import router as task_router
from router.timesheet import router as timesheet_router
from router.report_router import router as report_router

load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Read CORS origins from environment variables
FRONTEND_URL = os.getenv("FRONTEND_URL", "")

# Parse comma-separated origins and remove duplicates while preserving order
allowed_origins = list(dict.fromkeys(
    origin.strip() for origin in FRONTEND_URL.split(",") if origin.strip()
))

# If no origins configured, allow localhost for development
if not allowed_origins:
    allowed_origins = ["http://localhost:3000", "http://localhost:8000"]

logger.info(f"Allowed CORS Origins: {allowed_origins}")


app = FastAPI(
    title="Timesheet Tracker API",
    description="Projects, tasks, timesheet approvals and time reports.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

register_exception_handlers(app)

Base.metadata.create_all(bind=engine)


@app.get("/health")
def health_check():
    """Liveness plus a database round-trip"""
    database = "ok"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database error: {str(e)}")
        database = "unavailable"
    finally:
        db.close()

    return {
        "success": database == "ok",
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "redis": "ok" if redis_client.is_available else "unavailable",
    }


#  All Routes are Declared here
app.include_router(auth_router, tags=["Auth"])
app.include_router(user_router, tags=["Users"])
app.include_router(project_router, tags=["Projects"])
app.include_router(task_router, tags=["Tasks"])
app.include_router(timesheet_router, tags=["Timesheets"])
app.include_router(report_router, tags=["Reports"])
