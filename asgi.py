"""
asgi.py -- Application assembly for UniDirectory.

This is the ONLY file that imports from both api/ and web/. It joins the JSON
API, the page routes and the static assets (default profile picture) into a
single ASGI app.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from pathlib import Path

from fastapi.staticfiles import StaticFiles

from api.main import app
from web.routes import router as web_router

STATIC_DIR = Path(__file__).parent / "web" / "static"

app.include_router(web_router, tags=["Web UI"])
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
