import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from media_pricing import __version__
from media_pricing.config.logging_config import configure_logging
from media_pricing.config.settings import get_settings
from media_pricing.engine.models import PricingRule
from media_pricing.listings import (
    load_csv_listing,
    load_publications,
    transform_broadcast_television,
    transform_listicles,
    transform_publications,
    transform_television,
)
from media_pricing.api.deps import get_viewer_rules, log_trace_step, trace_logger
from media_pricing.api.factors_api import router as factors_router
from media_pricing.api.users_api import router as users_router
from media_pricing.store.db import get_session

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Media Pricing API",
    description="Priced media listings and pricing factor administration",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(factors_router)
app.include_router(users_router)


def _trace_hook():
    return log_trace_step if trace_logger.isEnabledFor(logging.DEBUG) else None


@app.get("/")
async def root():
    return {"status": "online", "message": "Media Pricing API Active"}


@app.get("/api/data")
async def get_publications(rules: Optional[list[PricingRule]] = Depends(get_viewer_rules)):
    settings = get_settings()
    try:
        items = load_publications(settings.publications_file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing publications: {e}")
        raise HTTPException(status_code=500, detail="Failed to read and process JSON file")
    return transform_publications(items, rules, on_step=_trace_hook())


@app.get("/api/listicles")
async def get_listicles():
    settings = get_settings()
    try:
        items = load_publications(settings.publications_file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing listicles: {e}")
        raise HTTPException(status_code=500, detail="Failed to read and process JSON file")
    return transform_listicles(items)


@app.get("/api/television")
async def get_television(rules: Optional[list[PricingRule]] = Depends(get_viewer_rules)):
    settings = get_settings()
    try:
        frame = load_csv_listing(settings.television_file)
    except Exception as e:
        logger.exception(f"Error reading or parsing CSV file: {e}")
        raise HTTPException(status_code=500, detail="Failed to read and process CSV file")
    return transform_television(frame, rules, on_step=_trace_hook())


@app.get("/api/broadcast_television")
async def get_broadcast_television(rules: Optional[list[PricingRule]] = Depends(get_viewer_rules)):
    settings = get_settings()
    try:
        frame = load_csv_listing(settings.broadcast_television_file)
    except Exception as e:
        logger.exception(f"Error reading or parsing CSV file: {e}")
        raise HTTPException(status_code=500, detail="Failed to read and process CSV file")
    return transform_broadcast_television(frame, rules, on_step=_trace_hook())


@app.get("/system/status")
async def get_status(session: Session = Depends(get_session)):
    settings = get_settings()
    try:
        session.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Database check failed: {e}")
        database_ok = False
    return {
        "engine_active": True,
        "database_ok": database_ok,
        "publications_available": settings.publications_file.exists(),
        "television_available": settings.television_file.exists(),
        "broadcast_television_available": settings.broadcast_television_file.exists(),
    }
