"""
Site-wide documents: per-locale content sections, the site config and the
admin dashboard counters.
"""
import copy
import logging
from typing import Optional

from pymongo import ReturnDocument
from pymongo.database import Database as MongoDatabase

import config
from database import CONTACT_FORMS, CONTENTS, PROJECTS, SITE_CONFIGS, utcnow
from errors import NotFoundError
from identifiers import LOCALES
from schemas import ContentUpdate, SiteConfigUpdate
from storage import delete_image_files

logger = logging.getLogger(__name__)

DEFAULT_SITE_CONFIG = {
    "contactEmail": "info@example.com",
    "displayEmail": "info@example.com",
    "logo": "/logo.webp",
    "seo": {
        "title": {"tr": "Kişisel Portfolyo", "en": "Personal Portfolio"},
        "description": {"tr": "Kişisel portfolyo sitesi", "en": "Personal portfolio site"},
        "keywords": {"tr": "tasarım, portfolyo", "en": "design, portfolio"},
        "ogImage": "/logo.webp",
    },
    "pagination": {"itemsPerPage": 9},
    "robotsEnabled": False,
}

PUBLIC_SITE_FIELDS = ("displayEmail", "logo", "seo", "pagination", "robotsEnabled")


# =======
# Content
# =======

def get_content(db: MongoDatabase, locale: str) -> dict:
    content = db[CONTENTS].find_one({"locale": locale})
    if content is None:
        raise NotFoundError(f"Content not found: {locale}")
    return content


def update_content(db: MongoDatabase, locale: str, payload: ContentUpdate) -> dict:
    """Replace the sections present in ``payload``; the rest stay untouched."""
    sections = payload.to_document(exclude_none=True)
    now = utcnow()
    updated = db[CONTENTS].find_one_and_update(
        {"locale": locale},
        {"$set": {**sections, "updatedAt": now}, "$setOnInsert": {"createdAt": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Updated %s content sections: %s", locale, ", ".join(sorted(sections)) or "-")
    return updated


# ===========
# Site config
# ===========

def get_site_config(db: MongoDatabase) -> dict:
    stored = db[SITE_CONFIGS].find_one({})
    if stored is None:
        return copy.deepcopy(DEFAULT_SITE_CONFIG)
    return stored


def public_site_config(db: MongoDatabase) -> dict:
    site = get_site_config(db)
    public = {k: site[k] for k in PUBLIC_SITE_FIELDS if k in site}
    public["siteUrl"] = config.SITE_URL
    return public


def _replaced(old: Optional[str], new: Optional[str]) -> bool:
    return bool(old) and bool(new) and old != new and old != config.DEFAULT_OG_IMAGE


def update_site_config(db: MongoDatabase, payload: SiteConfigUpdate) -> dict:
    existing = db[SITE_CONFIGS].find_one({}) or {}
    old_logo = existing.get("logo")
    old_og_image = (existing.get("seo") or {}).get("ogImage")

    data = payload.to_document()
    data["logo"] = payload.logo or old_logo or config.DEFAULT_OG_IMAGE
    data["seo"]["ogImage"] = payload.seo.og_image or config.DEFAULT_OG_IMAGE
    data["updatedAt"] = utcnow()

    if existing:
        db[SITE_CONFIGS].update_one({"_id": existing["_id"]}, {"$set": data})
    else:
        data["createdAt"] = data["updatedAt"]
        db[SITE_CONFIGS].insert_one(data)

    stale = []
    if _replaced(old_logo, data["logo"]):
        stale.append(old_logo)
    if _replaced(old_og_image, data["seo"]["ogImage"]) and old_og_image not in stale:
        stale.append(old_og_image)
    if stale:
        delete_image_files(stale)

    logger.info("Site config updated")
    return db[SITE_CONFIGS].find_one({})


def items_per_page(db: MongoDatabase) -> int:
    pagination = get_site_config(db).get("pagination") or {}
    return pagination.get("itemsPerPage") or 9


# =====
# Stats
# =====

def dashboard_stats(db: MongoDatabase) -> dict:
    content_updates = {}
    for locale in LOCALES:
        content = db[CONTENTS].find_one({"locale": locale}, {"updatedAt": 1})
        content_updates[locale] = content.get("updatedAt") if content else None
    return {
        "projectCount": db[PROJECTS].count_documents({"locale": "tr"}),
        "contentUpdates": content_updates,
        "unreadMessages": db[CONTACT_FORMS].count_documents({"isRead": False}),
    }
