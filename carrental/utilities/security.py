from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from carrental.config import JWT_SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, USER_COLLECTION
from carrental.database.db import get_database
from carrental.models.user.user import Role
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import ForbiddenError, UnauthorizedError, ValidationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


def _resolve_user(token: str, db: Database) -> dict:
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthorizedError()

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token missing user ID")

    try:
        user = db[USER_COLLECTION].find_one({"_id": objid(user_id, "user")})
    except ValidationError:
        raise UnauthorizedError("Token carries a malformed user ID")
    if not user:
        raise UnauthorizedError("User no longer exists")

    return {
        "user_id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role", Role.USER.value),
        "profile_image": user.get("profile_image"),
    }


def get_current_user(token: str = Depends(oauth2_scheme), db: Database = Depends(get_database)) -> dict:
    return _resolve_user(token, db)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Database = Depends(get_database),
) -> Optional[dict]:
    if not token:
        return None
    return _resolve_user(token, db)


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if not is_admin(current_user):
        raise ForbiddenError("Admin privileges required")
    return current_user


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get("role") == Role.ADMIN.value


def is_owner_or_admin(user: dict, owner_id) -> bool:
    return is_admin(user) or str(owner_id) == user.get("user_id")
