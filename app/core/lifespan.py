from contextlib import asynccontextmanager
import json
import logging

from app.frameworks.matcher import get_default_catalog
from app.observability.store import get_extraction_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    get_extraction_store()
    catalog = get_default_catalog()
    logger.info(json.dumps({"event": "extraction_service_ready", "frameworks": len(catalog.frameworks())}))
    yield
