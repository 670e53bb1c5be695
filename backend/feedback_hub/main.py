import logging

from fastapi import FastAPI

from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import assistant, auth, functions

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# Request lines from httpx would echo every proxy call
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

app = FastAPI(title="Feedback Hub API")
app.include_router(auth.router)
app.include_router(functions.router)
app.include_router(assistant.router)


@app.get("/info")
def root():
	return {
		"status": "ok",
		"openai_configured": bool(settings.openai_create_key),
		"functions_base_url": settings.functions_base_url,
	}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	try:
		ensure_schema()
	except Exception:
		logger.exception("schema migration skipped")
