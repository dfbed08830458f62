#!/usr/bin/env python3
import json
import logging
import os

import anyio
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from app.xmedia.cache import CacheStore
from app.xmedia.client import XMediaClient
from app.xmedia.service import FetchCallable, RefreshController
from app.xmedia.shapes import ShapeExtractor, default_strategies
from config.settings import Settings, load_settings
from scheduler.jobs.refresh_records import schedule_refresh

APP_NAME = "x-video-crawler"
LOG_FILE_NAME = "x-video-crawler.log"
STATIC_DIR = os.path.abspath(os.environ.get("STATIC_DIR") or "public")


def _setup_logging(log_dir):
    os.makedirs(log_dir, exist_ok=True)
    root = logging.getLogger("")
    log_path = os.path.join(log_dir, LOG_FILE_NAME)
    root.setLevel(logging.INFO)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    has_file = False
    has_console = False
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            if os.path.abspath(getattr(handler, "baseFilename", "")) == os.path.abspath(log_path):
                has_file = True
        elif isinstance(handler, logging.StreamHandler):
            has_console = True
    if not has_file:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root.addHandler(file_handler)
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)


class SafeJSONResponse(JSONResponse):
    def render(self, content):
        # Escaped output; upstream text may carry lone surrogates.
        return json.dumps(
            content,
            ensure_ascii=True,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def build_controller(
    settings: Settings,
    store: CacheStore,
    fetch: FetchCallable | None = None,
) -> RefreshController:
    if fetch is None:
        fetch = XMediaClient(
            url_template=settings.timeline_url,
            user_agent=settings.user_agent,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
    return RefreshController(
        store,
        fetch,
        settings.fetch_query(),
        ttl_seconds=settings.ttl_seconds,
        extractor=ShapeExtractor(default_strategies(enable_cdn_scan=settings.enable_cdn_scan)),
        overwrite_on_empty=settings.overwrite_on_empty,
    )


app = FastAPI(
    title=APP_NAME,
    description="Cached, normalized video listing for one X account.",
    default_response_class=SafeJSONResponse,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    settings = load_settings()
    _setup_logging(str(settings.log_dir))
    app.state.settings = settings
    store = CacheStore(settings.cache_file)
    store.load()
    app.state.store = store
    app.state.controller = build_controller(settings, store)
    app.state.scheduler = BackgroundScheduler(timezone="UTC")
    if schedule_refresh(app.state.scheduler, app.state.controller, settings.refresh_interval_seconds):
        app.state.scheduler.start()
    if not settings.fetch_query().has_credentials or not settings.subject_id:
        logging.warning("X_USER_ID or credentials not set; serving cached items only")
    logging.info("%s ready: cache_file=%s ttl=%ss", APP_NAME, store.path, settings.ttl_seconds)


@app.on_event("shutdown")
async def shutdown():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)


@app.get("/api/videos")
async def api_videos():
    records = await anyio.to_thread.run_sync(app.state.controller.get_records)
    return [record.to_dict() for record in records]


@app.get("/videos.json")
async def videos_file():
    path = app.state.store.path
    if not path.exists():
        # No snapshot written yet; try one refresh before giving up.
        await anyio.to_thread.run_sync(app.state.controller.get_records)
    if path.exists():
        return FileResponse(str(path), media_type="application/json")
    records = app.state.store.current().records
    if records:
        return SafeJSONResponse([record.to_dict() for record in records])
    return SafeJSONResponse({"error": "No cache available"}, status_code=404)


@app.get("/_health")
async def health():
    return app.state.controller.health()


if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run("api.main:app", host=settings.host, port=settings.port, reload=False)
