import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database as MongoDatabase

import config
from database import USERS, utcnow
from errors import InvalidRequestError

logger = logging.getLogger(__name__)

# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# =========
# Passwords
# =========

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# ======
# Tokens
# ======

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def get_current_admin(authorization: Optional[str] = Header(None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    username: str = payload.get("sub")
    role: str = payload.get("role")
    if not username or role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return {"username": username, "role": role}


# =====
# Users
# =====

def ensure_admin_user(db: MongoDatabase) -> None:
    """Seed the configured admin while no account exists yet."""
    users = db[USERS]
    if users.count_documents({}) > 0:
        return
    password_hash = config.ADMIN_PASSWORD_HASH or hash_password(config.ADMIN_PASSWORD)
    now = utcnow()
    users.insert_one({
        "username": config.ADMIN_USERNAME,
        "passwordHash": password_hash,
        "isAdmin": True,
        "createdAt": now,
        "updatedAt": now,
    })
    logger.info("Seeded admin user %s", config.ADMIN_USERNAME)


def authenticate(db: MongoDatabase, username: str, password: str) -> Optional[dict]:
    user = db[USERS].find_one({"username": username})
    if not user or not user.get("isAdmin") or not verify_password(password, user["passwordHash"]):
        logger.warning("Failed login for %s", username)
        return None
    return user


def change_password(db: MongoDatabase, username: str, current_password: str, new_password: str) -> None:
    user = db[USERS].find_one({"username": username})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not verify_password(current_password, user["passwordHash"]):
        raise InvalidRequestError("Current password is incorrect")
    db[USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"passwordHash": hash_password(new_password), "updatedAt": utcnow()}},
    )
    logger.info("Password changed for %s", username)
