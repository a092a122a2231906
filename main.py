"""
Ursus Map FastAPI Application

Main entry point for the Ursus Map application, serving the bear catalog,
the per-species satellite maps and the live map sessions.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from server.data import router as data_router
from server.map_session import router as map_session_router
from server.routes import router as routes_router

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

app = FastAPI(title="Ursus Map")

# Include all routers
app.include_router(routes_router)
app.include_router(data_router)
app.include_router(map_session_router)

# ============================================================
# Static Files
# ============================================================

app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
