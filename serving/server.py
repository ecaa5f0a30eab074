import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from rich.logging import RichHandler

from config import Settings, get_settings
from models.models import HealthResponse, SelectionResponse, ShlokResponse
from notifications.dispatcher import MissingToken, NotificationDispatcher, UserNotFound
from processing.processing import ShlokService
from retrieval.csv_datasource import DataSource
from retrieval.errors import EmptyCorpus, SourceUnavailable

VERSION = "1.0.0"

# Initialize FastAPI app and logger
app = FastAPI(title="Tamohar")
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True, markup=True)],
)
logger = logging.getLogger(__name__)

# Solve CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

# How to run:
# 1. Start the server: `hypercorn serving.server:app --reload --bind 0.0.0.0:3001`
#    (or `python main.py serve`)
# 2. Go to http://localhost:3001/docs to see the Swagger UI


def configure_app_state(settings: Settings, mongo_client=None) -> None:
    datasource = DataSource(
        settings.csv_path,
        fallback_path=settings.fallback_csv_path,
        cache_enabled=settings.cache_enabled,
    )
    app.state.settings = settings
    app.state.shlok_service = ShlokService(datasource)
    app.state.mongo_client = mongo_client
    app.state.dispatcher = None


@app.on_event("startup")
async def startup_event():
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    mongo_client = None
    if settings.mongo_uri:
        mongo_client = AsyncIOMotorClient(host=settings.mongo_uri)
    else:
        logger.warning("MONGO_URI not set, notification routes are disabled")

    configure_app_state(settings, mongo_client)
    if mongo_client is not None:
        app.state.dispatcher = await NotificationDispatcher.create(
            mongo_client, settings.mongo_db, app.state.shlok_service
        )


@app.on_event("shutdown")
async def shutdown_event():
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "message": message})


def _server_error(error: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": str(error)})


@app.get("/", response_model=HealthResponse)
async def root():
    return HealthResponse(
        status="ok",
        message="Tamohar Backend is operational",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/api/shloks/daily", response_model=ShlokResponse)
def daily_shlok():
    try:
        return ShlokResponse(shlok=app.state.shlok_service.get_daily_shlok())
    except (EmptyCorpus, SourceUnavailable):
        return _not_found("No shloks found")
    except Exception as e:
        logger.error(f"Error getting daily shlok: {e}")
        return _server_error(e)


@app.get("/api/shloks/random", response_model=ShlokResponse)
def random_shlok():
    try:
        return ShlokResponse(shlok=app.state.shlok_service.get_random_shlok())
    except (EmptyCorpus, SourceUnavailable):
        return _not_found("No shloks found")
    except Exception as e:
        logger.error(f"Error getting random shlok: {e}")
        return _server_error(e)


@app.get("/api/shloks/selection", response_model=SelectionResponse)
def daily_selection(on: Optional[date] = Query(None, alias="date")):
    try:
        return SelectionResponse(
            selection=app.state.shlok_service.daily_selection(on=on)
        )
    except (EmptyCorpus, SourceUnavailable):
        return _not_found("No shloks found")
    except Exception as e:
        logger.error(f"Error computing daily selection: {e}")
        return _server_error(e)


@app.get("/api/shloks/{chapter}/{verse}", response_model=ShlokResponse)
def shlok_by_chapter_verse(chapter: str, verse: str):
    try:
        shlok = app.state.shlok_service.get_shlok(chapter, verse)
    except SourceUnavailable:
        shlok = None
    except Exception as e:
        logger.error(f"Error getting shlok by chapter and verse: {e}")
        return _server_error(e)

    if shlok is None:
        return _not_found(f"Shlok not found for chapter {chapter}, verse {verse}")
    return ShlokResponse(shlok=shlok)


def _dispatcher_or_unavailable():
    dispatcher = getattr(app.state, "dispatcher", None)
    if dispatcher is None:
        return None, JSONResponse(
            status_code=503,
            content={"success": False, "error": "Notifications are not configured"},
        )
    return dispatcher, None


@app.get("/api/notifications/check")
async def check_notifications():
    dispatcher, unavailable = _dispatcher_or_unavailable()
    if unavailable:
        return unavailable
    try:
        result = await dispatcher.check_and_send()
        return {
            "success": True,
            "message": "Notification check triggered successfully",
            "result": result.model_dump(exclude_none=True),
        }
    except Exception as e:
        logger.error(f"Error in notification check: {e}")
        return _server_error(e)


@app.post("/api/notifications/user/{user_id}")
async def notify_user(user_id: str):
    dispatcher, unavailable = _dispatcher_or_unavailable()
    if unavailable:
        return unavailable
    try:
        result = await dispatcher.send_to_user(user_id)
        return {"success": True, **result}
    except UserNotFound as e:
        return JSONResponse(status_code=404, content={"success": False, "error": str(e)})
    except MissingToken as e:
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"Error sending notification to user: {e}")
        return _server_error(e)


@app.get("/api/notifications/debug/{user_id}")
async def debug_notifications(user_id: str):
    dispatcher, unavailable = _dispatcher_or_unavailable()
    if unavailable:
        return unavailable
    try:
        info = await dispatcher.debug_user(user_id)
        return {"success": True, "debug": info}
    except UserNotFound as e:
        return JSONResponse(status_code=404, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"Error debugging notifications: {e}")
        return _server_error(e)
