import uuid
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from vidtube.db.session import get_session
from vidtube.db.models import User
from vidtube.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/users/login", auto_error=False)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _require_secret_key(refresh: bool = False) -> str:
    secret = settings.REFRESH_SECRET_KEY if refresh else settings.SECRET_KEY
    if not secret:
        name = "REFRESH_SECRET_KEY" if refresh else "SECRET_KEY"
        raise RuntimeError(
            f"{name} must be set via environment variable for JWT operations"
        )
    return secret


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    bearer_token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the request principal from the access-token cookie or Bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer_token
    if not token:
        raise _credentials_exception("Unauthorized request")
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise _credentials_exception()
        user_id = int(subject)
    except (JWTError, ValueError):
        raise _credentials_exception("Invalid access token")
    user = db.get(User, user_id)
    if user is None:
        raise _credentials_exception("Invalid access token")
    return user


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(data: dict, expires_delta: timedelta, secret: str) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"exp": now + expires_delta, "iat": now})
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str) -> dict:
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE if settings.JWT_AUDIENCE else None,
        issuer=settings.JWT_ISSUER if settings.JWT_ISSUER else None,
        options={"verify_aud": bool(settings.JWT_AUDIENCE)},
    )


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    data = {"sub": str(user.id), "username": user.username, "email": user.email}
    return _encode(
        data,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        _require_secret_key(),
    )


def create_refresh_token(user: User, expires_delta: timedelta | None = None) -> str:
    return _encode(
        {"sub": str(user.id), "jti": uuid.uuid4().hex},
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        _require_secret_key(refresh=True),
    )


def decode_access_token(token: str) -> dict:
    return _decode(token, _require_secret_key())


def decode_refresh_token(token: str) -> dict:
    return _decode(token, _require_secret_key(refresh=True))


def issue_tokens(user: User, db: Session) -> tuple[str, str]:
    """Create a fresh access/refresh pair and store the refresh token on the user."""
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    db.add(user)
    db.commit()
    db.refresh(user)
    return access_token, refresh_token
