from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..admin_assistant import AdminAssistant
from ..conversations import ConversationStore
from ..observations import ObservationCreator
from ..schemas import (
	ChatMessage,
	ConversationReply,
	SendMessageRequest,
	TranscribeRequest,
	TranscribeResponse,
)
from ..services import (
	get_admin_assistant,
	get_admin_conversations,
	get_observation_creator,
	get_teacher_assistant,
	get_teacher_conversations,
)
from ..teacher_assistant import TeacherAssistant
from .auth import CurrentTeacher, get_current_teacher, require_admin

router = APIRouter(prefix="/assistant", tags=["assistant"])
logger = logging.getLogger(__name__)

NO_ACTION_REPLY = "Sorry, I could not determine the action."


def apology(err: Exception) -> str:
	return f"Sorry, I could not complete that: {str(err) or 'unknown error'}."


@router.post("/admin/messages", response_model=ConversationReply)
async def admin_message(
	req: SendMessageRequest,
	admin: CurrentTeacher = Depends(require_admin),
	assistant: AdminAssistant = Depends(get_admin_assistant),
	conversations: ConversationStore = Depends(get_admin_conversations),
):
	conversation = conversations.open(admin.id, req.session_id)
	conversation.append("user", req.content)
	try:
		reply = assistant.process(req.content)
	except Exception as err:
		logger.warning("admin command failed: %s", err)
		assistant.db.rollback()
		reply = apology(err)
	conversation.append("assistant", reply)
	return ConversationReply(session_id=conversation.session_id, reply=reply, messages=conversation.messages)


@router.post("/teacher/messages", response_model=ConversationReply)
async def teacher_message(
	req: SendMessageRequest,
	teacher: CurrentTeacher = Depends(get_current_teacher),
	assistant: TeacherAssistant = Depends(get_teacher_assistant),
	creator: ObservationCreator = Depends(get_observation_creator),
	conversations: ConversationStore = Depends(get_teacher_conversations),
):
	conversation = conversations.open(teacher.id, req.session_id)
	conversation.append("user", req.content)
	try:
		plan = await assistant.plan_action(req.content, teacher.name)
		if plan is None:
			reply = NO_ACTION_REPLY
		else:
			conversation.set_pending_action(plan)
			action = conversation.take_pending_action()
			result = await creator.create_observation(action, teacher.id)
			reply = f"Draft observation created for {result.teacher_name} on {result.date.astimezone():%d/%m/%Y}."
	except Exception as err:
		logger.warning("teacher assistant request failed: %s", err)
		reply = apology(err)
	conversation.append("assistant", reply)
	return ConversationReply(session_id=conversation.session_id, reply=reply, messages=conversation.messages)


@router.post("/teacher/transcribe", response_model=TranscribeResponse)
async def teacher_transcribe(
	req: TranscribeRequest,
	teacher: CurrentTeacher = Depends(get_current_teacher),
	assistant: TeacherAssistant = Depends(get_teacher_assistant),
):
	try:
		text = await assistant.transcribe_audio(req.audio_base64)
	except Exception as err:
		logger.warning("transcription failed for %s: %s", teacher.id, err)
		raise HTTPException(status_code=502, detail=f"Transcription failed: {str(err) or 'unknown error'}")
	return TranscribeResponse(text=text)


@router.get("/admin/sessions/{session_id}", response_model=list[ChatMessage])
async def admin_history(
	session_id: str,
	admin: CurrentTeacher = Depends(require_admin),
	conversations: ConversationStore = Depends(get_admin_conversations),
):
	conversation = conversations.get(session_id, admin.id)
	if conversation is None:
		raise HTTPException(status_code=404, detail="session not found")
	return conversation.messages


@router.get("/teacher/sessions/{session_id}", response_model=list[ChatMessage])
async def teacher_history(
	session_id: str,
	teacher: CurrentTeacher = Depends(get_current_teacher),
	conversations: ConversationStore = Depends(get_teacher_conversations),
):
	conversation = conversations.get(session_id, teacher.id)
	if conversation is None:
		raise HTTPException(status_code=404, detail="session not found")
	return conversation.messages
