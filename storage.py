# Image files behind project and site URLs: saving uploads and removing
# files no record refers to any more.

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from fastapi import UploadFile

import config
from errors import InvalidUploadError, NotFoundError, StorageError, UploadTooLargeError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
UPLOAD_KINDS = ("project", "logo", "ogImage")
CHUNK_SIZE = 1024 * 1024

PROJECT_IMAGE_PREFIX = "/images/projects/"
SITE_IMAGE_PREFIX = "/images/site/"


@dataclass
class CleanupReport:
    deleted: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _directory(kind: str) -> str:
    sub = "projects" if kind == "project" else "site"
    return os.path.join(config.UPLOAD_ROOT, "images", sub)


def _url_prefix(kind: str) -> str:
    return PROJECT_IMAGE_PREFIX if kind == "project" else SITE_IMAGE_PREFIX


def is_safe_file_name(name: str) -> bool:
    return bool(name) and ".." not in name and "/" not in name and "\\" not in name


def save_upload(upload: UploadFile, kind: str) -> dict:
    """Validate and store an uploaded image; returns its public URL and file name."""
    if kind not in UPLOAD_KINDS:
        raise InvalidUploadError("Invalid upload type; expected project, logo or ogImage")
    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidUploadError("Only JPEG, PNG, WebP and GIF images are accepted")

    original = re.sub(r"[^a-zA-Z0-9.-]", "_", upload.filename or "image")
    base, ext = os.path.splitext(original)
    file_name = f"{kind}_{base}_{secrets.token_hex(8)}_{int(time.time() * 1000)}{ext.lower()}"

    directory = _directory(kind)
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, file_name)

    total = 0
    try:
        with open(path, "wb") as f:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > config.MAX_UPLOAD_BYTES:
                    raise UploadTooLargeError("Images may not be larger than 5 MB")
                f.write(chunk)
    except UploadTooLargeError:
        _remove_quietly(path)
        raise
    except OSError as e:
        _remove_quietly(path)
        raise StorageError(f"Could not store upload: {e}") from e

    url = f"{_url_prefix(kind)}{file_name}"
    logger.info("Stored %s upload %s (%d bytes)", kind, url, total)
    return {"url": url, "fileName": file_name, "type": kind}


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


def _path_for_url(url: str) -> Optional[str]:
    file_name = url.rstrip("/").split("/")[-1]
    if not is_safe_file_name(file_name):
        return None
    kind = "project" if url.startswith(PROJECT_IMAGE_PREFIX) else "logo"
    return os.path.join(_directory(kind), file_name)


def delete_image_files(urls: Iterable[str]) -> CleanupReport:
    """Remove the files behind ``urls``; failures are collected, never raised."""
    report = CleanupReport()
    for url in urls:
        if not (url or "").startswith((PROJECT_IMAGE_PREFIX, SITE_IMAGE_PREFIX)):
            logger.info("Skipping image %s outside the upload directory", url)
            continue
        path = _path_for_url(url)
        if path is None:
            report.errors.append(f"{url} (invalid file name)")
            continue
        name = os.path.basename(path)
        try:
            os.remove(path)
        except FileNotFoundError:
            report.errors.append(f"{name} (file not found)")
        except OSError as e:
            logger.error("Deleting image %s failed: %s", url, e)
            report.errors.append(f"{name} ({e.strerror or 'error'})")
        else:
            report.deleted.append(name)
    if report.errors:
        logger.warning("Image cleanup left %d file(s): %s", len(report.errors), report.errors)
    return report


def delete_project_image(file_name: str) -> None:
    """Delete one project image by bare file name (admin image manager)."""
    if not is_safe_file_name(file_name):
        raise InvalidUploadError("Invalid file name")
    path = os.path.join(_directory("project"), file_name)
    try:
        os.remove(path)
    except FileNotFoundError:
        raise NotFoundError(f"File not found: {file_name}") from None
    except OSError as e:
        raise StorageError(f"Could not delete {file_name}: {e}") from e
    logger.info("Deleted project image %s", file_name)
