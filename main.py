"""
Event Dashboard - FastAPI Backend
Main application entry point
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from app.core.config import settings
from app.core.db import engine, Base
from app.api import (
    routes_attendees, routes_auth, routes_checkin, routes_company, routes_events,
    routes_gallery, routes_pages, routes_public, routes_seating, routes_voting, ws,
)
from app.utils.responses import error_response

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Event Dashboard",
    description="Events, attendees, QR check-in, seating, gallery and photo voting",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(message=str(exc), error_code="database_error", status_code=500)

# Mount static files
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# Include routers
app.include_router(routes_public.router, prefix="/api/public", tags=["public"])
app.include_router(routes_auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(routes_company.router, prefix="/api/company", tags=["company"])
app.include_router(routes_events.router, prefix="/api/events", tags=["events"])
app.include_router(routes_attendees.router, prefix="/api/attendees", tags=["attendees"])
app.include_router(routes_checkin.router, prefix="/api/checkin", tags=["checkin"])
app.include_router(routes_seating.router, prefix="/api/seating", tags=["seating"])
app.include_router(routes_gallery.router, prefix="/api/gallery", tags=["gallery"])
app.include_router(routes_voting.router, prefix="/api/voting", tags=["voting"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])
# Pages last: the not-found page catches every remaining path
app.include_router(routes_pages.router, tags=["pages"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
