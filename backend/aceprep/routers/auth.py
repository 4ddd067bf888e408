from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import AuthUser, AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

GUEST_USERNAMES = ("guest", "guests")
BCRYPT_MAX_BYTES = 72


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	username: str


class RegisterRequest(BaseModel):
	username: str
	password: str
	email: str
	phone: str


# Dev-only account from SEED_USERNAME / SEED_PASSWORD, hashed lazily on first login
_seed_hashes: Dict[str, str] = {}


def _bcrypt_input(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_input(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_input(plain_password), hashed_password)


def _seed_hash(username: str) -> Optional[str]:
	if not settings.seed_username or not settings.seed_password_plain or username != settings.seed_username:
		return None
	if username not in _seed_hashes:
		_seed_hashes[username] = hash_password(settings.seed_password_plain)
	return _seed_hashes[username]


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
	# Guests need no password and all land in one shared partition
	if username.lower() in GUEST_USERNAMES:
		return User(username=username.lower())
	row = db.get(AuthUser, username)
	hashed = row.password_hash if row else _seed_hash(username)
	if hashed and verify_password(password, hashed):
		return User(username=username)
	return None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	if expires_delta is None:
		minutes = settings.access_token_expire_minutes
		expires_delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)
	claims = {**data, "exp": datetime.now(timezone.utc) + expires_delta}
	return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _open_session(db: Session, username: str) -> str:
	session_id = uuid.uuid4().hex
	try:
		db.merge(AuthSession(session_id=session_id, username=username))
		db.commit()
	except Exception:
		db.rollback()
		logger.exception("Failed to persist auth session for %s", username)
		raise HTTPException(status_code=500, detail="Could not create session")
	return session_id


def _decode_token(token: str) -> Tuple[str, str]:
	"""Return ``(username, session_id)`` from a bearer token, or raise JWTError."""
	payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	username = payload.get("sub")
	session_id = payload.get("jti")
	if not username or not session_id:
		raise JWTError("token is missing sub or jti")
	return username, session_id


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect username or password")
	session_id = _open_session(db, user.username)
	return Token(access_token=create_access_token({"sub": user.username, "jti": session_id}))


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		username, session_id = _decode_token(token)
	except JWTError:
		raise credentials_exception
	# A deleted or purged session row revokes the token
	try:
		row = db.get(AuthSession, session_id)
		if row is None or row.username != username:
			raise credentials_exception
		row.last_activity_at = datetime.utcnow()
		db.commit()
	except HTTPException:
		raise
	except Exception:
		logger.exception("Session lookup failed")
		raise credentials_exception
	return User(username=username)


def require_ai_quota(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
	"""Charge one AI request against a registered user's quota. Guests are unmetered."""
	row = db.get(AuthUser, user.username)
	if row is None:
		return user
	if row.requests_used >= row.requests_limit:
		raise HTTPException(status_code=429, detail="request limit reached")
	row.requests_used += 1
	db.commit()
	return user


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user


def _clean_registration(req: RegisterRequest) -> RegisterRequest:
	cleaned = RegisterRequest(
		username=req.username.strip(),
		password=req.password,
		email=req.email.strip(),
		phone=req.phone.strip(),
	)
	if not cleaned.username or not cleaned.password:
		raise HTTPException(status_code=400, detail="username and password are required")
	if not cleaned.email or not cleaned.phone:
		raise HTTPException(status_code=400, detail="email and phone are required")
	if not 3 <= len(cleaned.username) <= 128:
		raise HTTPException(status_code=400, detail="username must be 3-128 characters")
	if cleaned.username.lower() in GUEST_USERNAMES:
		raise HTTPException(status_code=400, detail="username is reserved")
	return cleaned


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	new_user = _clean_registration(req)
	if db.get(AuthUser, new_user.username) is not None:
		raise HTTPException(status_code=409, detail="username already exists")
	db.add(
		AuthUser(
			username=new_user.username,
			password_hash=hash_password(new_user.password),
			email=new_user.email,
			phone=new_user.phone,
			requests_limit=settings.default_requests_limit,
		)
	)
	db.commit()
	logger.info("Registered user %s", new_user.username)
	return {"ok": True}
