from __future__ import annotations
import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import BadRequest


class ChatMessage(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str = Field(default_factory=lambda: uuid.uuid4().hex)
	role: Literal["user", "assistant"]
	content: str
	timestamp: datetime = Field(default_factory=datetime.utcnow)


class CreateObservationAction(BaseModel):
	type: Literal["create_observation"] = "create_observation"
	teacher_name: str = Field(min_length=1)
	subject: Optional[str] = None
	date: Optional[datetime] = None


# Only one variant so far; new action types join this alias as a discriminated union
ParsedAction = CreateObservationAction
parsed_action_adapter: TypeAdapter[ParsedAction] = TypeAdapter(ParsedAction)


class ObservationCreated(BaseModel):
	teacher_name: str
	date: datetime


# ---- teacher-helper function ----

class UpstreamMessage(BaseModel):
	role: Literal["system", "user", "assistant"]
	content: str


class ChatHelperRequest(BaseModel):
	mode: Literal["chat"] = "chat"
	messages: List[UpstreamMessage] = Field(min_length=1)
	model: str = "gpt-4o-mini"
	api_key: Optional[str] = None


class TranscribeHelperRequest(BaseModel):
	mode: Literal["transcribe"]
	audio_base64: str = Field(min_length=1)
	api_key: Optional[str] = None


HelperRequest = Annotated[Union[ChatHelperRequest, TranscribeHelperRequest], Field(discriminator="mode")]
_helper_request_adapter: TypeAdapter[HelperRequest] = TypeAdapter(HelperRequest)


def parse_helper_request(body: Any) -> Union[ChatHelperRequest, TranscribeHelperRequest]:
	if not isinstance(body, dict):
		raise BadRequest("request body must be a JSON object")
	body = {**body}
	if body.get("mode") is None:
		body["mode"] = "chat"
	try:
		return _helper_request_adapter.validate_python(body)
	except ValidationError as err:
		loc = err.errors()[0].get("loc", ())
		if "audio_base64" in loc:
			raise BadRequest("audio_base64 required") from err
		if "messages" in loc:
			raise BadRequest("messages required") from err
		raise BadRequest(f"invalid request: {err.errors()[0].get('msg')}") from err


# ---- feedback-ai-chat function ----

VALID_ROLES = ("system", "user", "assistant")


class FeedbackChatRequest(BaseModel):
	model_config = ConfigDict(extra="ignore")

	messages: List[UpstreamMessage] = Field(min_length=1)
	api_key: str = Field(min_length=1)
	model: str = "gpt-4"
	max_tokens: int = Field(default=4000, gt=0)
	temperature: float = Field(default=0.7, ge=0, le=2)


def parse_feedback_chat_request(body: Any) -> FeedbackChatRequest:
	if not isinstance(body, dict):
		raise BadRequest("request body must be a JSON object")
	messages = body.get("messages")
	if not isinstance(messages, list) or not messages:
		raise BadRequest("Messages array is required and cannot be empty")
	if not body.get("api_key"):
		raise BadRequest("OpenAI API key is required")
	for message in messages:
		if not isinstance(message, dict) or message.get("role") not in VALID_ROLES:
			raise BadRequest(f"Invalid message role. Must be one of: {', '.join(VALID_ROLES)}")
		content = message.get("content")
		if not content or not isinstance(content, str):
			raise BadRequest("Message content is required and must be a string")
	try:
		return FeedbackChatRequest.model_validate(body)
	except ValidationError as err:
		raise BadRequest(f"invalid request: {err.errors()[0].get('msg')}") from err


# ---- create-feedback function ----

class CreateFeedbackRequest(BaseModel):
	model_config = ConfigDict(extra="ignore")

	teacher_id: str = Field(min_length=1)
	observer_id: Optional[str] = None
	observation_date: Optional[datetime] = None
	status: str = "draft"
	lesson_subject: Optional[str] = None
	lesson_topic: Optional[str] = None
	class_year: Optional[str] = None
	strengths: Optional[str] = None
	areas_for_development: Optional[str] = None
	action_points: Optional[str] = None
	overall_rating: Optional[str] = None
	is_confidential: bool = False
	planning_preparation: Dict[str, Any] = Field(default_factory=dict)
	teaching_delivery: Dict[str, Any] = Field(default_factory=dict)
	student_engagement: Dict[str, Any] = Field(default_factory=dict)
	classroom_management: Dict[str, Any] = Field(default_factory=dict)
	assessment_feedback: Dict[str, Any] = Field(default_factory=dict)


def parse_create_feedback_request(body: Any) -> CreateFeedbackRequest:
	if not isinstance(body, dict) or not body.get("teacher_id"):
		raise BadRequest("teacher_id is required")
	try:
		return CreateFeedbackRequest.model_validate(body)
	except ValidationError as err:
		raise BadRequest(f"invalid request: {err.errors()[0].get('msg')}") from err


class FeedbackRecord(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	teacher_id: str
	observer_id: Optional[str] = None
	observation_date: datetime
	status: str
	lesson_subject: Optional[str] = None
	lesson_topic: Optional[str] = None
	class_year: Optional[str] = None
	strengths: Optional[str] = None
	areas_for_development: Optional[str] = None
	action_points: Optional[str] = None
	overall_rating: Optional[str] = None
	is_confidential: bool
	planning_preparation: Dict[str, Any]
	teaching_delivery: Dict[str, Any]
	student_engagement: Dict[str, Any]
	classroom_management: Dict[str, Any]
	assessment_feedback: Dict[str, Any]
	created_at: datetime
	updated_at: datetime


# ---- assistant routes ----

class SendMessageRequest(BaseModel):
	session_id: Optional[str] = None
	content: str = Field(min_length=1)


class ConversationReply(BaseModel):
	session_id: str
	reply: str
	messages: List[ChatMessage]


class TranscribeRequest(BaseModel):
	audio_base64: str = Field(min_length=1)


class TranscribeResponse(BaseModel):
	text: str
