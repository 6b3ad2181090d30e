"""
Contact form: public submissions and the admin inbox.
"""
import logging
import math
import re
import threading
import time
from typing import Dict, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.database import Database as MongoDatabase

import config
from database import CONTACT_FORMS, create_document, get_documents, utcnow
from errors import InvalidRequestError, NotFoundError, RateLimitedError
from schemas import ContactFormIn

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter per key, kept in process memory."""

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False once the window is used up."""
        now = self._clock()
        with self._lock:
            for expired in [k for k, (_, reset_at) in self._windows.items() if reset_at < now]:
                del self._windows[expired]
            count, reset_at = self._windows.get(key, (0, now + self.window_seconds))
            if now > reset_at:
                count, reset_at = 0, now + self.window_seconds
            count += 1
            self._windows[key] = (count, reset_at)
        return count <= self.max_requests

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


contact_limiter = RateLimiter(config.CONTACT_RATE_LIMIT, config.CONTACT_RATE_WINDOW_SECONDS)


def client_address(forwarded_for: Optional[str], peer: Optional[str]) -> str:
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return peer or "unknown"


def submit_contact_form(
    db: MongoDatabase,
    form: ContactFormIn,
    ip_address: str,
    user_agent: str = "unknown",
    limiter: RateLimiter = contact_limiter,
) -> dict:
    if not limiter.hit(ip_address):
        logger.warning("Contact form rate limit hit for %s", ip_address)
        raise RateLimitedError("Too many requests, please try again later")

    if form.honeypot:
        # answer like a normal submission so bots get no signal
        logger.info("Honeypot filled by %s; submission dropped", ip_address)
        return {"success": True}

    create_document(db, CONTACT_FORMS, {
        "name": form.name,
        "email": form.email,
        "message": form.message,
        "ipAddress": ip_address,
        "userAgent": user_agent,
        "isRead": False,
    })
    logger.info("Stored contact message from %s", form.email)
    return {"success": True}


# =====
# Inbox
# =====

def _object_id(form_id: str) -> ObjectId:
    try:
        return ObjectId(form_id)
    except (InvalidId, TypeError):
        raise InvalidRequestError(f"Invalid message id: {form_id}") from None


def list_contact_forms(db: MongoDatabase, page: int = 1, limit: int = 10, search: str = "") -> dict:
    page = max(page, 1)
    limit = max(limit, 1)
    query = {}
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"email": pattern}, {"message": pattern}]

    total = db[CONTACT_FORMS].count_documents(query)
    forms = get_documents(db, CONTACT_FORMS, query, [("createdAt", DESCENDING)], (page - 1) * limit, limit)
    return {
        "forms": forms,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
        "totalCount": total,
    }


def get_contact_form(db: MongoDatabase, form_id: str) -> dict:
    form = db[CONTACT_FORMS].find_one({"_id": _object_id(form_id)})
    if form is None:
        raise NotFoundError("Message not found")
    return form


def delete_contact_form(db: MongoDatabase, form_id: str) -> None:
    result = db[CONTACT_FORMS].delete_one({"_id": _object_id(form_id)})
    if result.deleted_count == 0:
        raise NotFoundError("Message not found")
    logger.info("Deleted contact message %s", form_id)


def set_read_status(db: MongoDatabase, form_id: str, is_read: bool) -> dict:
    oid = _object_id(form_id)
    result = db[CONTACT_FORMS].update_one({"_id": oid}, {"$set": {"isRead": is_read, "updatedAt": utcnow()}})
    if result.matched_count == 0:
        raise NotFoundError("Message not found")
    return db[CONTACT_FORMS].find_one({"_id": oid})
