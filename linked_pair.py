"""
The Turkish and English records of one project, handled as a pair.

Both records live as independent documents in ``projects`` and share an
``originalId``. Everything that has to write to both of them (linking a new
record, keeping ``images`` identical, deleting the pair) goes through
:class:`LinkedPair`, so callers never reach for the sibling themselves.

There is no transaction across the two documents: the source-locale write
always commits first and a failing sibling write is logged, not raised.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pymongo.database import Database as MongoDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import PROJECTS, utcnow
from errors import DuplicateRecordError, ProjectNotFound
from identifiers import new_original_id, other_locale

logger = logging.getLogger(__name__)


@dataclass
class DeleteOutcome:
    deleted: List[dict] = field(default_factory=list)
    # image URLs no surviving record refers to, deduplicated in first-seen order
    images: List[str] = field(default_factory=list)
    sibling_found: bool = False


def merge_images(*image_lists: List[str]) -> List[str]:
    merged: List[str] = []
    for images in image_lists:
        for url in images or []:
            if url not in merged:
                merged.append(url)
    return merged


class LinkedPair:
    def __init__(self, db: MongoDatabase):
        self.collection = db[PROJECTS]

    def find(self, locale: str, original_id: str) -> Optional[dict]:
        return self.collection.find_one({"locale": locale, "originalId": original_id})

    def sibling_of(self, record: dict) -> Optional[dict]:
        return self.find(other_locale(record["locale"]), record["originalId"])

    def create(self, locale: str, fields: dict) -> dict:
        """Insert a record for ``locale``; ``fields`` use stored (camelCase) keys.

        A missing ``originalId`` is generated. A supplied one links the new
        record to an existing sibling, and is rejected when ``locale`` already
        has a record for it.
        """
        record = dict(fields)
        record["locale"] = locale
        if not record.get("originalId"):
            record["originalId"] = new_original_id()
        elif self.find(locale, record["originalId"]) is not None:
            raise DuplicateRecordError(
                f"A {locale} project already exists for originalId {record['originalId']}"
            )

        now = utcnow()
        record.setdefault("createdAt", now)
        record["updatedAt"] = now
        try:
            self.collection.insert_one(record)
        except DuplicateKeyError as e:
            raise DuplicateRecordError(f"Slug already used in {locale}: {record.get('id')}") from e
        logger.info("Created %s project %s (originalId=%s)", locale, record.get("id"), record["originalId"])
        return record

    def propagate_images(self, original_id: str, images: List[str], source_locale: str) -> bool:
        """Copy ``images`` onto the other-locale record. False when nothing was written."""
        target = other_locale(source_locale)
        try:
            result = self.collection.update_one(
                {"locale": target, "originalId": original_id},
                {"$set": {"images": list(images), "updatedAt": utcnow()}},
            )
        except PyMongoError as e:
            logger.error("Image propagation to %s sibling of %s failed: %s", target, original_id, e)
            return False
        if result.matched_count == 0:
            logger.info("No %s sibling for %s; images not propagated", target, original_id)
            return False
        logger.info("Propagated %d images to %s sibling of %s", len(images), target, original_id)
        return True

    def linked_delete(self, original_id: str, source_locale: str) -> DeleteOutcome:
        source = self.find(source_locale, original_id)
        if source is None:
            raise ProjectNotFound(source_locale, original_id)

        target = other_locale(source_locale)
        sibling = self.find(target, original_id)

        self.collection.delete_one({"_id": source["_id"]})
        outcome = DeleteOutcome(deleted=[source], sibling_found=sibling is not None)
        logger.info("Deleted %s project %s (originalId=%s)", source_locale, source.get("id"), original_id)

        if sibling is None:
            logger.info("No %s sibling for %s; only the %s record was deleted", target, original_id, source_locale)
        else:
            try:
                self.collection.delete_one({"_id": sibling["_id"]})
            except PyMongoError as e:
                # the sibling stays behind as an unlinked single-locale project
                logger.error("Deleting %s sibling of %s failed: %s", target, original_id, e)
            else:
                outcome.deleted.append(sibling)
                logger.info("Deleted %s sibling %s", target, sibling.get("id"))

        candidates = merge_images(*(r.get("images") for r in [source, sibling] if r))
        still_used = set()
        if candidates:
            still_used = set(self.collection.distinct("images", {"images": {"$in": candidates}}))
        outcome.images = [url for url in candidates if url not in still_used]
        if len(outcome.images) < len(candidates):
            logger.info("Keeping %d image(s) other projects still use", len(candidates) - len(outcome.images))
        return outcome

    def create_placeholder(self, record: dict) -> Optional[dict]:
        """Empty, unpublished record in the other locale sharing ``record``'s images."""
        target = other_locale(record["locale"])
        original_id = record["originalId"]
        if self.find(target, original_id) is not None:
            return None
        fields = {
            "id": f"{target}-{original_id[:8]}",
            "originalId": original_id,
            "title": "",
            "description": "",
            "technologies": [],
            "images": list(record.get("images") or []),
            "status": False,
            "order": record.get("order", 0),
            "seo": {
                "metaTitle": "",
                "metaDescription": "",
                "metaKeywords": "",
                "ogTitle": "",
                "ogDescription": "",
                "ogImage": (record.get("seo") or {}).get("ogImage", ""),
            },
        }
        try:
            return self.create(target, fields)
        except (DuplicateRecordError, PyMongoError) as e:
            # the primary record is already committed
            logger.error("Placeholder %s sibling for %s not created: %s", target, original_id, e)
            return None
