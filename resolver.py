"""
Resolve a project from a ``(locale, key)`` pair.

``key`` may be the locale's slug or the cross-locale ``originalId`` and the
caller does not have to know which. Strategies run in order and the first
hit wins:

1. slug in the requested locale
2. ``originalId`` in the requested locale, for UUID-shaped keys
3. ``originalId`` in the requested locale, for any other key
4. sibling bridge: find the key (slug or ``originalId``) in the other
   locale and follow its ``originalId`` back to the requested locale

Strategy 4 covers URLs built for one locale being opened while the site
renders the other one (stale bookmarks, a ``?lang=`` override).
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pymongo.database import Database as MongoDatabase

from database import PROJECTS
from errors import ProjectNotFound
from identifiers import looks_like_uuid, other_locale

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    SLUG = "slug"
    ORIGINAL_ID = "original_id"
    ORIGINAL_ID_FALLBACK = "original_id_fallback"
    SIBLING_BRIDGE = "sibling_bridge"


@dataclass
class Resolution:
    record: dict
    strategy: Strategy


@dataclass
class Availability:
    exists: bool
    target_id: Optional[str] = None


class ProjectResolver:
    def __init__(self, db: MongoDatabase):
        self.collection = db[PROJECTS]

    def try_resolve(self, locale: str, key: str, bridge: bool = True) -> Optional[Resolution]:
        if not key:
            return None

        record = self.collection.find_one({"locale": locale, "id": key})
        if record is not None:
            return Resolution(record, Strategy.SLUG)

        strategy = Strategy.ORIGINAL_ID if looks_like_uuid(key) else Strategy.ORIGINAL_ID_FALLBACK
        record = self.collection.find_one({"locale": locale, "originalId": key})
        if record is not None:
            return Resolution(record, strategy)

        if not bridge:
            return None

        other = other_locale(locale)
        bridged = self.collection.find_one(
            {"locale": other, "$or": [{"id": key}, {"originalId": key}]}
        )
        if bridged is None or not bridged.get("originalId"):
            logger.debug("No %s or %s project for key %s", locale, other, key)
            return None

        record = self.collection.find_one({"locale": locale, "originalId": bridged["originalId"]})
        if record is None:
            logger.info(
                "Key %s matched %s project %s but it has no %s sibling",
                key, other, bridged.get("id"), locale,
            )
            return None
        return Resolution(record, Strategy.SIBLING_BRIDGE)

    def resolve(self, locale: str, key: str, bridge: bool = True) -> Resolution:
        resolution = self.try_resolve(locale, key, bridge=bridge)
        if resolution is None:
            raise ProjectNotFound(locale, key)
        return resolution

    def availability(self, key: str, source_locale: str, target_locale: str) -> Availability:
        """Whether the project behind ``key`` is published in ``target_locale``."""
        source = self.try_resolve(source_locale, key)
        if source is None:
            return Availability(exists=False)
        original_id = source.record.get("originalId")
        if not original_id:
            return Availability(exists=False)
        target = self.collection.find_one({"locale": target_locale, "originalId": original_id})
        if target is None or target.get("status") is not True or not target.get("id"):
            return Availability(exists=False)
        return Availability(exists=True, target_id=target["id"])


def language_switch_href(
    resolver: ProjectResolver,
    current_locale: str,
    target_locale: str,
    project_key: Optional[str] = None,
    on_projects_page: bool = False,
) -> tuple:
    """Where the language switcher should point; returns ``(href, availability)``.

    Detail pages link to the published sibling or fall back to the site root.
    The project listing maps to the listing; everything else to the root.
    """
    if project_key:
        found = resolver.availability(project_key, current_locale, target_locale)
        if found.exists:
            return f"/{target_locale}/projects/{found.target_id}", found
        return f"/{target_locale}", found
    if on_projects_page:
        return f"/{target_locale}/projects", Availability(exists=True)
    return f"/{target_locale}", Availability(exists=True)
