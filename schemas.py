"""
Request and document schemas for the portfolio CMS.

Documents are stored in MongoDB with camelCase keys; every model here reads
and writes those keys through its aliases while exposing snake_case
attributes to Python code.

Collections:
- projects: one record per locale per logical project
- contents: one document per locale with the site sections
- siteconfigs: single site-wide settings document
- contactforms: messages sent through the contact form
- users: admin accounts
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class Locale(str, Enum):
    tr = "tr"
    en = "en"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, **kwargs)


# ====
# Auth
# ====
class LoginRequest(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


# ========
# Projects
# ========
class SeoPatch(CamelModel):
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None


def _clean_strings(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


class ProjectCreate(CamelModel):
    id: Optional[str] = Field(None, description="Slug; derived from the title when empty")
    original_id: Optional[str] = Field(None, description="Set to link with an existing sibling")
    title: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    status: Optional[bool] = None
    order: Optional[int] = None
    seo: Optional[SeoPatch] = None

    @field_validator("technologies", "images")
    @classmethod
    def _strip(cls, v):
        return _clean_strings(v)


class ProjectUpdate(CamelModel):
    """Partial update. ``originalId`` is not a field, so clients cannot send one."""
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    technologies: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[bool] = None
    order: Optional[int] = None
    seo: Optional[SeoPatch] = None

    @field_validator("technologies", "images")
    @classmethod
    def _strip(cls, v):
        return None if v is None else _clean_strings(v)


class OrderItem(BaseModel):
    id: str
    order: int


class ProjectOrderRequest(BaseModel):
    locale: Locale
    orders: List[OrderItem] = Field(..., min_length=1)


class SeoGenerateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    technologies: List[str] = Field(default_factory=list)
    locale: Locale = Locale.tr


# =======
# Content
# =======
class Link(CamelModel):
    label: str
    url: str


class Nav(CamelModel):
    links: List[Link] = Field(default_factory=list)


class Hero(CamelModel):
    title: str = ""
    description: str = ""
    contact_button: str = ""
    projects_button: str = ""


class TitledText(CamelModel):
    title: str = ""
    description: str = ""


class About(CamelModel):
    title: str = ""
    description: str = ""
    experience: TitledText = Field(default_factory=TitledText)
    education: TitledText = Field(default_factory=TitledText)


class Skill(CamelModel):
    name: str
    level: int = Field(..., ge=0, le=100)


class SkillCategory(CamelModel):
    title: str = ""
    skills: List[Skill] = Field(default_factory=list)


class SkillCategories(CamelModel):
    frontend: SkillCategory = Field(default_factory=SkillCategory)
    backend: SkillCategory = Field(default_factory=SkillCategory)
    database: SkillCategory = Field(default_factory=SkillCategory)


class Skills(CamelModel):
    title: str = ""
    description: str = ""
    categories: SkillCategories = Field(default_factory=SkillCategories)


class ExpertiseCategory(CamelModel):
    title: str = ""
    description: str = ""
    icon: Optional[str] = None


class Expertise(CamelModel):
    title: str = ""
    description: str = ""
    categories: List[ExpertiseCategory] = Field(default_factory=list)


class ContactInfo(CamelModel):
    title: str = ""
    location: str = ""


class ContactFormLabels(CamelModel):
    title: str = ""
    name: str = ""
    email: str = ""
    message: str = ""
    submit: str = ""


class ContactSection(CamelModel):
    title: str = ""
    description: str = ""
    info: ContactInfo = Field(default_factory=ContactInfo)
    form: ContactFormLabels = Field(default_factory=ContactFormLabels)


class QuickLinks(CamelModel):
    title: str = ""
    links: List[Link] = Field(default_factory=list)


class FooterContact(CamelModel):
    title: str = ""
    email: str = ""
    location: str = ""
    instagram: Optional[str] = None


class SocialMedia(CamelModel):
    email: str = ""
    linkedin: Optional[str] = None
    instagram: Optional[str] = None


class Footer(CamelModel):
    description: str = ""
    quick_links: QuickLinks = Field(default_factory=QuickLinks)
    contact: FooterContact = Field(default_factory=FooterContact)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    rights: str = ""


class ContentUpdate(CamelModel):
    """Any subset of sections; each given section replaces the stored one."""
    nav: Optional[Nav] = None
    hero: Optional[Hero] = None
    about: Optional[About] = None
    skills: Optional[Skills] = None
    expertise: Optional[Expertise] = None
    contact: Optional[ContactSection] = None
    footer: Optional[Footer] = None


# ===========
# Site config
# ===========
class LocalizedText(BaseModel):
    tr: str = ""
    en: str = ""


class SiteSeo(CamelModel):
    title: LocalizedText = Field(default_factory=LocalizedText)
    description: LocalizedText = Field(default_factory=LocalizedText)
    keywords: LocalizedText = Field(default_factory=LocalizedText)
    og_image: Optional[str] = None

    @field_validator("title", "description", "keywords", mode="before")
    @classmethod
    def _plain_text_is_turkish(cls, v):
        # older clients sent a single string
        if v is None:
            return {"tr": "", "en": ""}
        if isinstance(v, str):
            return {"tr": v, "en": ""}
        return v


class PaginationSettings(CamelModel):
    items_per_page: int = Field(9, ge=3, le=30)


class SiteConfigUpdate(CamelModel):
    contact_email: EmailStr
    display_email: EmailStr
    logo: Optional[str] = None
    seo: SiteSeo = Field(default_factory=SiteSeo)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    robots_enabled: bool = False


# =============
# Contact forms
# =============
class ContactFormIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    message: str = Field(..., min_length=10, max_length=1000)
    honeypot: Optional[str] = None


class ReadStatusUpdate(CamelModel):
    is_read: bool


# =======
# Uploads
# =======
class DeleteImageRequest(CamelModel):
    file_name: str = Field(..., min_length=1)


# ============
# Public pages
# ============
class LanguageSwitch(BaseModel):
    href: str
    exists: bool
    target_id: Optional[str] = None


class PageMetadata(BaseModel):
    title: str
    description: str
    keywords: str
    canonical: str
    alternates: Dict[str, str] = Field(default_factory=dict)
    open_graph: Dict[str, object] = Field(default_factory=dict)
