from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..models import Teacher
from .. import store

router = APIRouter(prefix="/auth", tags=["auth"])

# Tokens come from the hosted auth provider; this service never issues them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=True)


class CurrentTeacher(BaseModel):
	id: str
	name: str
	email: str
	is_admin: bool


def decode_token(token: str) -> dict:
	options = {"verify_aud": settings.jwt_audience is not None}
	return jwt.decode(
		token,
		settings.jwt_secret_key,
		algorithms=[settings.jwt_algorithm],
		audience=settings.jwt_audience,
		options=options,
	)


def get_current_teacher(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> CurrentTeacher:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		payload = decode_token(token)
		email: Optional[str] = payload.get("email")
		if not email:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	teacher: Optional[Teacher] = store.get_teacher_by_email(db, email)
	if teacher is None or not teacher.active:
		raise credentials_exception
	return CurrentTeacher(id=teacher.id, name=teacher.name, email=teacher.email, is_admin=bool(teacher.is_admin))


def require_admin(teacher: CurrentTeacher = Depends(get_current_teacher)) -> CurrentTeacher:
	if not teacher.is_admin:
		raise HTTPException(status_code=403, detail="admin access required")
	return teacher


@router.get("/me", response_model=CurrentTeacher)
async def me(teacher: CurrentTeacher = Depends(get_current_teacher)):
	return teacher
