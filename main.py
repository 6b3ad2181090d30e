import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pymongo.database import Database as MongoDatabase

import config
import contact
import projects
import site_settings
import storage
from auth import authenticate, change_password, create_access_token, ensure_admin_user, get_current_admin
from database import PROJECTS, Database, ensure_indexes, get_db, serialize_document
from errors import DatabaseUnavailable, DuplicateRecordError, PortfolioError, ProjectNotFound
from identifiers import LOCALES, other_locale
from linked_pair import LinkedPair
from resolver import ProjectResolver, language_switch_href
from schemas import (
    ChangePasswordRequest,
    ContactFormIn,
    ContentUpdate,
    DeleteImageRequest,
    LanguageSwitch,
    Locale,
    LoginRequest,
    PageMetadata,
    ProjectCreate,
    ProjectOrderRequest,
    ProjectUpdate,
    ReadStatusUpdate,
    SeoGenerateRequest,
    SiteConfigUpdate,
    Token,
)
from seo import generate_seo_suggestions, project_metadata, robots_txt, site_og_image, sitemap_xml

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        app.state.database.connect()
    except DatabaseUnavailable:
        # keep serving; get_db retries on the next request
        logger.warning("MongoDB not reachable at startup")
    yield
    app.state.database.close()


# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Portfolio CMS API", lifespan=lifespan)
app.state.database = Database(
    config.DATABASE_URL,
    config.DATABASE_NAME,
    config.DATABASE_TIMEOUT_MS,
    on_connect=(ensure_indexes, ensure_admin_user),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortfolioError)
def portfolio_error_handler(request: Request, exc: PortfolioError):
    body = {"detail": exc.detail}
    if isinstance(exc, DuplicateRecordError) and exc.suggestion:
        body["suggestedSlug"] = exc.suggestion
    return JSONResponse(status_code=exc.status_code, content=body)


# =========
# Utilities
# =========

def _published(record: dict, locale: str, key: str) -> dict:
    if record.get("status") is not True:
        raise ProjectNotFound(locale, key)
    return record


def _alternates(db: MongoDatabase, record: dict) -> dict:
    sibling = LinkedPair(db).sibling_of(record)
    if sibling is None or sibling.get("status") is not True:
        return {}
    return {sibling["locale"]: sibling["id"]}


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "portfolio-cms-api"}


@app.get("/test")
def test_database(request: Request):
    try:
        db = request.app.state.database.connect()
    except DatabaseUnavailable:
        return {"backend": "running", "database": "not-available", "collections": []}
    return {"backend": "running", "database": "connected", "collections": db.list_collection_names()[:10]}


# Auth
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest, db: MongoDatabase = Depends(get_db)):
    user = authenticate(db, data.username, data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token({"sub": user["username"], "role": "admin"})
    return Token(access_token=token, username=user["username"])


@app.get("/api/admin/validate-token")
def validate_token(admin: dict = Depends(get_current_admin)):
    return {"valid": True, "username": admin["username"]}


@app.put("/api/admin/change-password")
def update_password(
    data: ChangePasswordRequest,
    admin: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    change_password(db, admin["username"], data.current_password, data.new_password)
    return {"success": True}


# Projects (admin)
@app.get("/api/admin/projects/slug-check")
def slug_check(
    slug: str,
    locale: Locale,
    original_id: Optional[str] = Query(None, alias="originalId"),
    current_id: Optional[str] = Query(None, alias="currentId"),
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    return projects.check_slug(db, slug, locale.value, original_id, current_id)


@app.post("/api/admin/projects/order")
def reorder(data: ProjectOrderRequest, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    matched = projects.reorder_projects(db, data.locale.value, data.orders)
    return {"success": True, "updated": matched}


@app.get("/api/admin/projects/{locale}")
def admin_list_projects(locale: Locale, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return [serialize_document(p) for p in projects.backfill_order(db, locale.value)]


@app.post("/api/admin/projects/{locale}", status_code=201)
def admin_create_project(
    locale: Locale,
    project: ProjectCreate,
    create_sibling: bool = Query(False, alias="createSibling"),
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    default_og_image = site_og_image(site_settings.get_site_config(db))
    record = projects.create_project(db, locale.value, project, default_og_image, create_sibling)
    return serialize_document(record)


@app.get("/api/admin/projects/{locale}/by-original-id/{original_id}")
def admin_project_by_original_id(
    locale: Locale,
    original_id: str,
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    record = LinkedPair(db).find(locale.value, original_id)
    if record is None:
        raise ProjectNotFound(locale.value, original_id)
    return serialize_document(record)


@app.get("/api/admin/projects/{locale}/{key}")
def admin_get_project(locale: Locale, key: str, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return serialize_document(ProjectResolver(db).resolve(locale.value, key).record)


@app.put("/api/admin/projects/{locale}/{key}")
def admin_update_project(
    locale: Locale,
    key: str,
    project: ProjectUpdate,
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    default_og_image = site_og_image(site_settings.get_site_config(db))
    return serialize_document(projects.update_project(db, locale.value, key, project, default_og_image))


@app.delete("/api/admin/projects/{locale}/{key}")
def admin_delete_project(locale: Locale, key: str, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return projects.delete_project(db, locale.value, key)


# Projects (public)
@app.get("/api/projects/{locale}")
def list_published_projects(
    locale: Locale,
    page: int = Query(1, ge=1),
    db: MongoDatabase = Depends(get_db),
):
    items = projects.list_projects(db, locale.value, published_only=True)
    return projects.paginate(items, page, site_settings.items_per_page(db))


@app.get("/api/projects/{locale}/by-original-id/{original_id}")
def project_by_original_id(locale: Locale, original_id: str, db: MongoDatabase = Depends(get_db)):
    record = LinkedPair(db).find(locale.value, original_id)
    if record is None:
        raise ProjectNotFound(locale.value, original_id)
    return serialize_document(_published(record, locale.value, original_id))


@app.get("/api/projects/{locale}/{key}/metadata", response_model=PageMetadata)
def project_page_metadata(locale: Locale, key: str, db: MongoDatabase = Depends(get_db)):
    record = _published(ProjectResolver(db).resolve(locale.value, key).record, locale.value, key)
    return project_metadata(record, site_settings.get_site_config(db), _alternates(db, record))


@app.get("/api/projects/{locale}/{key}")
def get_project(locale: Locale, key: str, db: MongoDatabase = Depends(get_db)):
    record = ProjectResolver(db).resolve(locale.value, key).record
    return serialize_document(_published(record, locale.value, key))


@app.get("/api/language-switch", response_model=LanguageSwitch)
def language_switch(
    current_locale: Locale = Query(..., alias="currentLocale"),
    target_locale: Optional[Locale] = Query(None, alias="targetLocale"),
    project_key: Optional[str] = Query(None, alias="projectKey"),
    on_projects_page: bool = Query(False, alias="onProjectsPage"),
    db: MongoDatabase = Depends(get_db),
):
    target = target_locale.value if target_locale else other_locale(current_locale.value)
    href, found = language_switch_href(
        ProjectResolver(db), current_locale.value, target, project_key, on_projects_page
    )
    return LanguageSwitch(href=href, exists=found.exists, target_id=found.target_id)


# Content
@app.get("/api/content/{locale}")
def public_content(locale: Locale, db: MongoDatabase = Depends(get_db)):
    return serialize_document(site_settings.get_content(db, locale.value))


@app.get("/api/admin/content/{locale}")
def admin_content(locale: Locale, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return serialize_document(site_settings.get_content(db, locale.value))


@app.put("/api/admin/content/{locale}")
def admin_update_content(
    locale: Locale,
    content: ContentUpdate,
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    return serialize_document(site_settings.update_content(db, locale.value, content))


# Site config
@app.get("/api/site-config")
def public_site_config(db: MongoDatabase = Depends(get_db)):
    return serialize_document(site_settings.public_site_config(db))


@app.get("/api/admin/site-config")
def admin_site_config(_: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return serialize_document(site_settings.get_site_config(db))


@app.put("/api/admin/site-config")
def admin_update_site_config(
    data: SiteConfigUpdate,
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    return {"success": True, "data": serialize_document(site_settings.update_site_config(db, data))}


@app.get("/api/admin/stats")
def stats(_: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return site_settings.dashboard_stats(db)


# Contact
@app.post("/api/contact")
def submit_contact(form: ContactFormIn, request: Request, db: MongoDatabase = Depends(get_db)):
    ip_address = contact.client_address(
        request.headers.get("x-forwarded-for"),
        request.client.host if request.client else None,
    )
    return contact.submit_contact_form(db, form, ip_address, request.headers.get("user-agent", "unknown"))


@app.get("/api/admin/contact-forms")
def list_contact_forms(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    result = contact.list_contact_forms(db, page, limit, search)
    result["forms"] = [serialize_document(f) for f in result["forms"]]
    return result


@app.get("/api/admin/contact-forms/{form_id}")
def get_contact_form(form_id: str, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    return {"form": serialize_document(contact.get_contact_form(db, form_id))}


@app.delete("/api/admin/contact-forms/{form_id}")
def delete_contact_form(form_id: str, _: dict = Depends(get_current_admin), db: MongoDatabase = Depends(get_db)):
    contact.delete_contact_form(db, form_id)
    return {"success": True}


@app.put("/api/admin/contact-forms/{form_id}/read")
def mark_contact_form(
    form_id: str,
    data: ReadStatusUpdate,
    _: dict = Depends(get_current_admin),
    db: MongoDatabase = Depends(get_db),
):
    return {"form": serialize_document(contact.set_read_status(db, form_id, data.is_read))}


# Uploads
@app.post("/api/admin/upload")
def upload_image(
    file: UploadFile = File(...),
    kind: str = Form("project", alias="type"),
    _: dict = Depends(get_current_admin),
):
    return storage.save_upload(file, kind)


@app.post("/api/admin/delete-image")
def delete_image(data: DeleteImageRequest, _: dict = Depends(get_current_admin)):
    storage.delete_project_image(data.file_name)
    return {"success": True}


# SEO
@app.post("/api/admin/seo-generator")
def seo_generator(data: SeoGenerateRequest, _: dict = Depends(get_current_admin)):
    return generate_seo_suggestions(data.title, data.description, data.technologies, data.locale.value)


@app.get("/robots.txt", response_class=PlainTextResponse)
def robots(db: MongoDatabase = Depends(get_db)):
    return robots_txt(bool(site_settings.get_site_config(db).get("robotsEnabled")), config.SITE_URL)


@app.get("/sitemap.xml")
def sitemap(db: MongoDatabase = Depends(get_db)):
    published = db[PROJECTS].find({"status": True}, {"locale": 1, "id": 1, "updatedAt": 1})
    return Response(content=sitemap_xml(config.SITE_URL, published, LOCALES), media_type="application/xml")
