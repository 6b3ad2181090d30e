"""
SEO fields, page metadata, robots.txt and sitemap.xml.
"""
import logging
from typing import Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

import httpx

import config

logger = logging.getLogger(__name__)

SEO_FIELDS = ("metaTitle", "metaDescription", "metaKeywords", "ogTitle", "ogDescription", "ogImage")
DESCRIPTION_LIMIT = 155

BLOCKED_BOTS = (
    "*", "Googlebot", "Bingbot", "Slurp", "DuckDuckBot", "Baiduspider", "YandexBot",
    "Sogou", "facebookexternalhit", "ia_archiver", "Twitterbot", "LinkedInBot",
)


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def complete_seo(
    seo: Optional[dict],
    title: str,
    description: str,
    default_og_image: str,
    existing: Optional[dict] = None,
) -> dict:
    """Fill every empty SEO subfield; each one falls back on its own.

    Order per field: the submitted value, the stored value, then the
    title/description/site default.
    """
    seo = seo or {}
    existing = existing or {}

    def pick(name: str) -> str:
        value = seo.get(name)
        if value:
            return value
        return existing.get(name) or ""

    meta_title = pick("metaTitle") or title or ""
    meta_description = pick("metaDescription") or truncate(description)
    return {
        "metaTitle": meta_title,
        "metaDescription": meta_description,
        "metaKeywords": pick("metaKeywords"),
        "ogTitle": pick("ogTitle") or meta_title,
        "ogDescription": pick("ogDescription") or meta_description,
        "ogImage": pick("ogImage") or default_og_image,
    }


def site_og_image(site_config: dict) -> str:
    return (site_config.get("seo") or {}).get("ogImage") or site_config.get("logo") or config.DEFAULT_OG_IMAGE


def project_metadata(
    project: dict,
    site_config: dict,
    alternates: Optional[Dict[str, str]] = None,
) -> dict:
    """Head metadata for a project detail page.

    ``alternates`` maps locale to the sibling slug for hreflang links.
    """
    locale = project["locale"]
    slug = project["id"]
    seo = project.get("seo") or {}
    site_name = config.SITE_NAME

    title = seo.get("metaTitle") or project.get("title") or f"{slug} Project"
    description = seo.get("metaDescription") or truncate(project.get("description")) or f"Details for project {slug}"
    keywords = seo.get("metaKeywords") or ", ".join(project.get("technologies") or [])
    og_title = seo.get("ogTitle") or title
    og_description = seo.get("ogDescription") or description
    og_image = seo.get("ogImage") or site_og_image(site_config)
    if og_image.startswith("/"):
        og_image = f"{config.SITE_URL}{og_image}"

    links = {loc: f"{config.SITE_URL}/{loc}/projects/{target}" for loc, target in (alternates or {}).items()}
    links[locale] = f"{config.SITE_URL}/{locale}/projects/{slug}"

    return {
        "title": f"{site_name} | {title}",
        "description": description,
        "keywords": keywords,
        "canonical": links[locale],
        "alternates": links,
        "open_graph": {
            "title": f"{site_name} | {og_title}",
            "description": og_description,
            "url": links[locale],
            "site_name": site_name,
            "locale": "tr_TR" if locale == "tr" else "en_US",
            "type": "article",
            "images": [{"url": og_image, "alt": og_title}],
        },
    }


# =============
# SEO generator
# =============

EMPTY_SUGGESTION = {
    "metaTitle": "",
    "metaDescription": "",
    "metaKeywords": "",
    "ogTitle": "",
    "ogDescription": "",
}

_LABELS = (
    ("metaTitle", ("meta title", "meta başlık")),
    ("metaDescription", ("meta description", "meta açıklama")),
    ("metaKeywords", ("meta keywords", "meta anahtar")),
    ("ogTitle", ("og title", "og başlık")),
    ("ogDescription", ("og description", "og açıklama")),
)


def build_prompt(title: str, description: str, technologies: List[str], locale: str) -> str:
    techs = ", ".join(technologies)
    if locale == "en":
        return (
            "Generate SEO metadata for a project with the following details:\n"
            f"Title: {title}\nDescription: {description}\nTechnologies: {techs}\n\n"
            "Please provide the following fields:\n"
            "1. Meta Title (max 60 characters)\n"
            "2. Meta Description (max 160 characters)\n"
            "3. Meta Keywords (comma separated)\n"
            "4. OG Title (max 60 characters)\n"
            "5. OG Description (max 160 characters)\n\n"
            "Format your response as labeled fields, like:\n"
            "Meta Title: [your meta title]\nMeta Description: [your meta description]"
        )
    return (
        "Şu bilgilere sahip bir proje için SEO meta verileri oluştur:\n"
        f"Başlık: {title}\nAçıklama: {description}\nTeknolojiler: {techs}\n\n"
        "Lütfen aşağıdaki alanları sağla:\n"
        "1. Meta Başlık (maksimum 60 karakter)\n"
        "2. Meta Açıklama (maksimum 160 karakter)\n"
        "3. Meta Anahtar Kelimeler (virgülle ayrılmış)\n"
        "4. OG Başlık (maksimum 60 karakter)\n"
        "5. OG Açıklama (maksimum 160 karakter)\n\n"
        "Yanıtını şöyle formatla:\n"
        "Meta Başlık: [meta başlık]\nMeta Açıklama: [meta açıklama]"
    )


def _value_after_colon(line: str) -> str:
    _, sep, value = line.partition(":")
    if not sep:
        return ""
    value = value.strip()
    # "1. " style numbering and surrounding quotes
    while value[:1].isdigit():
        head, dot, rest = value.partition(".")
        if not dot or not head.isdigit():
            break
        value = rest.strip()
    return value.strip("\"'")


def parse_generated_seo(text: str) -> dict:
    result = dict(EMPTY_SUGGESTION)
    for line in (text or "").splitlines():
        lower = line.strip().lower()
        if not lower:
            continue
        for name, labels in _LABELS:
            if any(label in lower for label in labels):
                result[name] = _value_after_colon(line)
                break
    if not result["ogTitle"]:
        result["ogTitle"] = result["metaTitle"]
    if not result["ogDescription"]:
        result["ogDescription"] = result["metaDescription"]
    return result


def generate_seo_suggestions(
    title: str,
    description: str,
    technologies: List[str],
    locale: str,
    client: Optional[httpx.Client] = None,
) -> dict:
    """Ask the text model for SEO fields; empty fields whenever that fails."""
    if not config.HUGGINGFACE_API_KEY:
        logger.warning("HUGGINGFACE_API_KEY not set; returning empty SEO suggestions")
        return dict(EMPTY_SUGGESTION)

    payload = {
        "inputs": build_prompt(title, description, technologies, locale),
        "parameters": {"max_new_tokens": 250, "temperature": 0.7, "top_p": 0.9, "do_sample": True},
    }
    headers = {"Authorization": f"Bearer {config.HUGGINGFACE_API_KEY}"}
    own_client = client is None
    http = client or httpx.Client(timeout=30.0)
    try:
        response = http.post(config.HUGGINGFACE_MODEL_URL, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("SEO generator request failed: %s", e)
        return dict(EMPTY_SUGGESTION)
    finally:
        if own_client:
            http.close()

    if not isinstance(data, list) or not data or not isinstance(data[0], dict) or not data[0].get("generated_text"):
        logger.warning("SEO generator returned an unexpected payload")
        return dict(EMPTY_SUGGESTION)
    return parse_generated_seo(data[0]["generated_text"])


# =================
# robots / sitemap
# =================

def robots_txt(robots_enabled: bool, site_url: str) -> str:
    if robots_enabled:
        return f"User-agent: *\nAllow: /\n\nSitemap: {site_url}/sitemap.xml\n"
    blocks = [f"User-agent: {bot}\nDisallow: /" for bot in BLOCKED_BOTS]
    return "\n\n".join(blocks) + "\n"


def sitemap_xml(site_url: str, projects: Iterable[dict], locales: Iterable[str]) -> str:
    entries = []
    for priority, locale in zip(("1.0", "0.9"), locales):
        entries.append((f"{site_url}/{locale}", None, priority))
    for project in projects:
        updated = project.get("updatedAt")
        lastmod = updated.date().isoformat() if hasattr(updated, "date") else None
        entries.append((f"{site_url}/{project['locale']}/projects/{project['id']}", lastmod, "0.7"))

    lines = ['<?xml version="1.0" encoding="UTF-8"?>',
             '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">']
    for loc, lastmod, priority in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(loc)}</loc>")
        if lastmod:
            lines.append(f"    <lastmod>{lastmod}</lastmod>")
        lines.append("    <changefreq>monthly</changefreq>")
        lines.append(f"    <priority>{priority}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
