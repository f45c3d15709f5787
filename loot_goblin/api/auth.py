"""
Identity for the adventure service: bcrypt password hashes and Bearer JWTs.
Bcrypt only looks at the first 72 bytes, so passwords are cut to 72 UTF-8 bytes before
hashing and checking (bcrypt 4.x raises on longer input instead of truncating).
"""

import logging
import os
import re
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .database import get_db
from .models import Player

logger = logging.getLogger(__name__)

# Letters, digits and underscore, 2-32 characters
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{2,32}$")
MIN_PASSWORD_LENGTH = 6

JWT_SECRET = os.environ.get("JWT_SECRET", "loot-goblin-dev-secret")
JWT_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=30)

BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

bearer_scheme = HTTPBearer(auto_error=False)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        logger.warning("Unreadable password hash on record")
        return False


def issue_token(player_id: str) -> str:
    """Signed token whose subject is the player id."""
    claims = {"sub": player_id, "exp": datetime.now(timezone.utc) + TOKEN_LIFETIME}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def player_id_from_token(token: str) -> str | None:
    """Subject of a valid token, or None when the token is bad or expired."""
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return claims.get("sub")


def is_valid_username(username: str) -> bool:
    return USERNAME_PATTERN.fullmatch(username) is not None


def _player_for(credentials: HTTPAuthorizationCredentials | None, db: Session) -> Player | None:
    if credentials is None:
        return None
    player_id = player_id_from_token(credentials.credentials)
    if player_id is None:
        return None
    return db.get(Player, player_id)


def get_current_player(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Player:
    """Dependency: the authenticated player, or 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    player = _player_for(credentials, db)
    if player is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return player


def get_current_player_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Player | None:
    """Dependency: the authenticated player, or None for anonymous requests."""
    return _player_for(credentials, db)
