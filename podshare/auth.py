import os
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

# Prefer JWT_SECRET but support legacy JWT_SECRET_KEY for compatibility
SECRET = os.getenv('JWT_SECRET') or os.getenv('JWT_SECRET_KEY', 'devsecret')
ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', str(60 * 24 * 7)))
SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'session_token')

bearer = HTTPBearer(auto_error=False)

def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({'exp': expire})
    encoded = jwt.encode(to_encode, SECRET, algorithm=ALGORITHM)
    return encoded

def decode_token(token: str):
    try:
        payload = jwt.decode(token, SECRET, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> dict:
    """Resolve the session issued by the identity provider.

    The bearer header wins; the session cookie is the fallback used by
    browser clients.
    """
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE_NAME)
    payload = decode_token(token) if token else None
    if not payload:
        raise HTTPException(status_code=401, detail='Unauthorized')
    raw_id = payload.get('id', payload.get('sub'))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail='Unauthorized')
    return {'id': user_id, 'name': payload.get('name'), 'email': payload.get('email')}
