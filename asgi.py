"""
asgi.py -- Application assembly for Chirpy.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about web/; web/routes.py knows nothing about api/.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from fastapi.staticfiles import StaticFiles

from api.main import app
from core.config import get_settings
from web.routes import count_fileserver_hits
from web.routes import router as web_router

app.include_router(web_router, tags=["Admin"])
app.middleware("http")(count_fileserver_hits)
app.mount("/app", StaticFiles(directory=get_settings().filepath_root, html=True), name="app")
