"""
Project CRUD on top of the linked pair and the resolver.
"""
import logging
import math
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING, UpdateOne
from pymongo.database import Database as MongoDatabase

from database import PROJECTS, get_documents, serialize_document, utcnow
from errors import DuplicateRecordError, InvalidRequestError
from identifiers import other_locale, slugify
from linked_pair import LinkedPair
from resolver import ProjectResolver
from schemas import OrderItem, ProjectCreate, ProjectUpdate
from seo import complete_seo
from storage import delete_image_files

logger = logging.getLogger(__name__)

LISTING_SORT = [("order", ASCENDING), ("createdAt", DESCENDING)]


# =======
# Listing
# =======

def list_projects(db: MongoDatabase, locale: str, published_only: bool = False) -> List[dict]:
    query = {"locale": locale}
    if published_only:
        query["status"] = True
    return get_documents(db, PROJECTS, query, LISTING_SORT)


def backfill_order(db: MongoDatabase, locale: str) -> List[dict]:
    """Admin listing: give records without ``order`` their current position."""
    projects = list_projects(db, locale)
    if any(p.get("order") is None for p in projects):
        logger.info("Some %s projects have no order value; renumbering", locale)
        db[PROJECTS].bulk_write(
            [UpdateOne({"_id": p["_id"]}, {"$set": {"order": i}}) for i, p in enumerate(projects)]
        )
        projects = list_projects(db, locale)
    return projects


def paginate(items: List[dict], page: int, per_page: int) -> dict:
    total = len(items)
    total_pages = max(1, math.ceil(total / per_page)) if per_page else 1
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return {
        "list": [serialize_document(p) for p in items[start:start + per_page]],
        "page": page,
        "perPage": per_page,
        "totalPages": total_pages,
        "totalCount": total,
    }


# =====
# Slugs
# =====

def generate_unique_slug(
    db: MongoDatabase,
    base: str,
    locale: str,
    exclude_original_id: Optional[str] = None,
) -> str:
    slug = base
    counter = 1
    while True:
        query = {"locale": locale, "id": slug}
        if exclude_original_id:
            query["originalId"] = {"$ne": exclude_original_id}
        if db[PROJECTS].find_one(query) is None:
            return slug
        slug = f"{base}{counter}"
        counter += 1


def check_slug(
    db: MongoDatabase,
    slug: str,
    locale: str,
    original_id: Optional[str] = None,
    current_id: Optional[str] = None,
) -> dict:
    if current_id and current_id == slug:
        return {"isAvailable": True, "slug": slug}
    query = {"locale": locale, "id": slug}
    if original_id:
        query["originalId"] = {"$ne": original_id}
    if db[PROJECTS].find_one(query) is None:
        return {"isAvailable": True, "slug": slug}
    return {"isAvailable": False, "suggestedSlug": generate_unique_slug(db, slug, locale, original_id)}


# ======
# Create
# ======

def create_project(
    db: MongoDatabase,
    locale: str,
    payload: ProjectCreate,
    default_og_image: str,
    create_sibling: bool = False,
) -> dict:
    pair = LinkedPair(db)
    fields = payload.to_document(exclude={"seo"})
    title = fields.get("title", "").strip()

    if locale == "tr" and not title:
        raise InvalidRequestError("Turkish projects need a title")

    slug = slugify(fields.get("id") or "") or slugify(title)
    original_id = fields.get("originalId")
    if slug:
        if not check_slug(db, slug, locale)["isAvailable"]:
            raise DuplicateRecordError(
                f"Slug already used in {locale}: {slug}",
                suggestion=generate_unique_slug(db, slug, locale),
            )
    elif locale == "en" and original_id:
        slug = generate_unique_slug(db, f"en-{original_id[:8]}", locale)
    else:
        raise InvalidRequestError("A slug or a title is required")
    fields["id"] = slug
    fields["title"] = title

    if fields.get("status") is None:
        # Turkish records go live immediately; translations start hidden
        fields["status"] = locale == "tr"
    if fields.get("order") is None:
        fields["order"] = db[PROJECTS].count_documents({"locale": locale})

    sibling = pair.find(other_locale(locale), original_id) if original_id else None
    if sibling is not None and not fields["images"]:
        fields["images"] = list(sibling.get("images") or [])

    seo = payload.seo.to_document(exclude_none=True) if payload.seo else None
    fields["seo"] = complete_seo(seo, title, fields.get("description", ""), default_og_image)

    record = pair.create(locale, fields)

    if sibling is not None and fields["images"] != (sibling.get("images") or []):
        pair.propagate_images(record["originalId"], fields["images"], locale)
    if create_sibling and sibling is None:
        pair.create_placeholder(record)
    return record


# ======
# Update
# ======

def update_project(
    db: MongoDatabase,
    locale: str,
    key: str,
    payload: ProjectUpdate,
    default_og_image: str,
) -> dict:
    existing = ProjectResolver(db).resolve(locale, key, bridge=False).record
    changes = payload.to_document(exclude_unset=True, exclude={"seo"})
    for text_field in ("title", "description"):
        if text_field in changes and changes[text_field] is None:
            changes[text_field] = ""
    changes = {k: v for k, v in changes.items() if v is not None}

    if "id" in changes:
        slug = slugify(changes["id"] or "")
        if not slug:
            changes.pop("id")
        elif slug != existing["id"]:
            result = check_slug(db, slug, locale, original_id=existing["originalId"])
            if not result["isAvailable"]:
                raise DuplicateRecordError(
                    f"Slug already used in {locale}: {slug}",
                    suggestion=result["suggestedSlug"],
                )
            changes["id"] = slug
        else:
            changes.pop("id")

    title = changes.get("title", existing.get("title", ""))
    description = changes.get("description", existing.get("description", ""))
    seo = payload.seo.to_document(exclude_none=True) if payload.seo else None
    changes["seo"] = complete_seo(seo, title, description, default_og_image, existing=existing.get("seo"))

    changes["updatedAt"] = utcnow()
    db[PROJECTS].update_one({"_id": existing["_id"]}, {"$set": changes})
    updated = db[PROJECTS].find_one({"_id": existing["_id"]})

    if "images" in changes:
        LinkedPair(db).propagate_images(existing["originalId"], changes["images"], locale)
    return updated


# ======
# Delete
# ======

def delete_project(db: MongoDatabase, locale: str, key: str) -> dict:
    record = ProjectResolver(db).resolve(locale, key, bridge=False).record
    outcome = LinkedPair(db).linked_delete(record["originalId"], locale)
    report = delete_image_files(outcome.images)
    return {
        "success": True,
        "deleted": [{"locale": r["locale"], "id": r.get("id")} for r in outcome.deleted],
        "siblingFound": outcome.sibling_found,
        "images": {"deleted": report.deleted, "errors": report.errors},
    }


# =====
# Order
# =====

def reorder_projects(db: MongoDatabase, locale: str, orders: List[OrderItem]) -> int:
    result = db[PROJECTS].bulk_write(
        [UpdateOne({"locale": locale, "id": item.id}, {"$set": {"order": item.order}}) for item in orders]
    )
    return result.matched_count
