from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging

from ..db import get_db
from ..deps import get_settings
from ..models import User as UserRow
from ..settings import Settings

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	id: str
	username: str
	is_admin: bool = False


def hash_password(password: str) -> str:
	return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(db: Session, username: str, password: str) -> Optional[UserRow]:
	row = db.execute(select(UserRow).where(UserRow.username == username)).scalar_one_or_none()
	if row and verify_password(password, row.password_hash):
		return row
	return None


def create_access_token(settings: Settings, data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	delta = expires_delta or timedelta(minutes=max(settings.access_token_expire_minutes, 1))
	to_encode.update({"exp": datetime.now(timezone.utc) + delta})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@router.post("/token", response_model=Token)
async def login(
	form_data: OAuth2PasswordRequestForm = Depends(),
	db: Session = Depends(get_db),
	settings: Settings = Depends(get_settings),
):
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect username or password")
	return Token(access_token=create_access_token(settings, {"sub": user.id}))


def get_current_user(
	token: Optional[str] = Depends(oauth2_scheme),
	db: Session = Depends(get_db),
	settings: Settings = Depends(get_settings),
) -> User:
	credentials_exception = HTTPException(status_code=401, detail="Unauthorized")
	if not token:
		raise credentials_exception
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		user_id: str | None = payload.get("sub")
		if user_id is None:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	# Admin flag and existence come from the store, not the token
	row = db.get(UserRow, user_id)
	if row is None:
		raise credentials_exception
	return User(id=row.id, username=row.username, is_admin=row.is_admin)


def require_admin(user: User = Depends(get_current_user)) -> User:
	if not user.is_admin:
		raise HTTPException(status_code=403, detail="Admin access required")
	return user


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user


class Registration(BaseModel):
	username: str = Field(min_length=3, max_length=128)
	password: str = Field(min_length=8)


@router.post("/register", status_code=201)
def register(body: Registration, db: Session = Depends(get_db)):
	"""Create a learner account. The learning profile is provisioned on first visit."""
	username = body.username.strip()
	taken = db.execute(select(UserRow.id).where(UserRow.username == username)).scalar_one_or_none()
	if taken is not None:
		raise HTTPException(status_code=409, detail="Username is already taken")
	row = UserRow(username=username, password_hash=hash_password(body.password))
	db.add(row)
	db.commit()
	logger.info("Registered user %s", row.id)
	return {"id": row.id, "username": row.username}
