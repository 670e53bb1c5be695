from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import BadRequest, UpstreamError
from ..openai_client import OpenAIClient, decode_audio_base64
from ..schemas import (
	ChatHelperRequest,
	FeedbackRecord,
	parse_create_feedback_request,
	parse_feedback_chat_request,
	parse_helper_request,
)
from ..settings import settings
from .. import store

router = APIRouter(prefix="/functions/v1", tags=["functions"])
logger = logging.getLogger(__name__)

CORS_HEADERS = {
	"Access-Control-Allow-Origin": "*",
	"Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
	"Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _json(content: Any, status_code: int = 200) -> JSONResponse:
	return JSONResponse(content=jsonable_encoder(content), status_code=status_code, headers=CORS_HEADERS)


def _error(message: str, status_code: int) -> JSONResponse:
	return _json({"error": message}, status_code)


async def _read_body(request: Request) -> Any:
	try:
		return await request.json()
	except ValueError as err:
		raise BadRequest("request body must be JSON") from err


def get_openai_client_factory():
	"""Overridable in tests; returns a callable building an upstream client for a key."""
	return lambda api_key: OpenAIClient(api_key)


@router.options("/teacher-helper", include_in_schema=False)
@router.options("/create-feedback", include_in_schema=False)
@router.options("/feedback-ai-chat", include_in_schema=False)
async def preflight():
	return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("/teacher-helper")
async def teacher_helper(request: Request, client_factory=Depends(get_openai_client_factory)):
	try:
		body = await _read_body(request)
	except BadRequest as err:
		return _error(str(err), 400)
	# Key first, so a keyless caller learns that before any field errors
	api_key: Optional[str] = (body.get("api_key") if isinstance(body, dict) else None) or settings.openai_create_key
	if not api_key:
		return _error("Missing API key", 400)
	try:
		req = parse_helper_request(body)
	except BadRequest as err:
		return _error(str(err), 400)

	client = client_factory(api_key)
	try:
		if isinstance(req, ChatHelperRequest):
			messages = [m.model_dump() for m in req.messages]
			data = await client.chat(messages, model=req.model)
			return _json(data)
		audio = decode_audio_base64(req.audio_base64)
		text = await client.transcribe(audio)
		return _json({"text": text})
	except BadRequest as err:
		return _error(str(err), 400)
	except UpstreamError as err:
		logger.warning("teacher-helper upstream failure (%s): %s", req.mode, err)
		return _error(str(err), 500)
	except Exception as err:
		logger.exception("teacher-helper failed")
		return _error(str(err) or "Unknown error", 500)
	finally:
		await client.aclose()


@router.post("/create-feedback")
async def create_feedback(request: Request, db: Session = Depends(get_db)):
	try:
		req = parse_create_feedback_request(await _read_body(request))
	except BadRequest as err:
		return _error(str(err), 400)
	observation_date = req.observation_date or datetime.now(timezone.utc)
	if observation_date.tzinfo is not None:
		observation_date = observation_date.astimezone(timezone.utc).replace(tzinfo=None)
	try:
		row = store.insert_feedback(db, req, observation_date)
	except ValueError as err:
		return _error(str(err), 400)
	except SQLAlchemyError as err:
		logger.warning("create-feedback insert failed: %s", err)
		return _error(str(getattr(err, "orig", None) or err) or "insert failed", 400)
	except Exception as err:
		logger.exception("create-feedback failed")
		return _error(str(err) or "Unknown error", 500)
	record: Dict[str, Any] = FeedbackRecord.model_validate(row).model_dump(mode="json")
	return _json({"feedback": record})


@router.post("/feedback-ai-chat")
async def feedback_ai_chat(request: Request, client_factory=Depends(get_openai_client_factory)):
	try:
		req = parse_feedback_chat_request(await _read_body(request))
	except BadRequest as err:
		return _error(str(err), 400)

	client = client_factory(req.api_key)
	try:
		data = await client.chat(
			[m.model_dump() for m in req.messages],
			model=req.model,
			temperature=req.temperature,
			max_tokens=req.max_tokens,
		)
	except UpstreamError as err:
		logger.warning("feedback-ai-chat upstream failure: %s", err)
		if err.status_code is None:
			return _json({"error": "Internal server error", "message": str(err)}, 500)
		return _json({"error": err.detail or "Failed to process AI request", "status": err.status_code}, err.status_code)
	except Exception as err:
		logger.exception("feedback-ai-chat failed")
		return _json({"error": "Internal server error", "message": str(err) or "Unknown error occurred"}, 500)
	finally:
		await client.aclose()

	if not isinstance(data, dict) or not data.get("choices"):
		return _error("No response generated from AI service", 500)
	logger.info("feedback-ai-chat usage: model=%s tokens=%s", req.model, (data.get("usage") or {}).get("total_tokens", "unknown"))
	return _json(data)
