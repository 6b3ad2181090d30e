import os

_ROOT = os.path.dirname(os.path.abspath(__file__))

# ========
# Database
# ========
DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "portfolio")
DATABASE_TIMEOUT_MS = int(os.getenv("DATABASE_TIMEOUT_MS", "5000"))

# ====
# Auth
# ====
JWT_SECRET = os.getenv("JWT_SECRET", "super-secret-key-change")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 12)))

# Seed admin credentials via env; only used while the users collection is empty
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")

# =====
# Files
# =====
UPLOAD_ROOT = os.getenv("UPLOAD_ROOT", os.path.join(_ROOT, "public"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

# ====
# Site
# ====
SITE_URL = os.getenv("SITE_URL", "http://localhost:3000").rstrip("/")
SITE_NAME = os.getenv("SITE_NAME", "Portfolio")
DEFAULT_OG_IMAGE = os.getenv("DEFAULT_OG_IMAGE", "/logo.webp")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# SEO generator; without a key the generator returns empty suggestions
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
HUGGINGFACE_MODEL_URL = os.getenv(
    "HUGGINGFACE_MODEL_URL",
    "https://api-inference.huggingface.co/models/mistralai/Mistral-7B-Instruct-v0.2",
)

# Contact form: requests per IP per window
CONTACT_RATE_LIMIT = int(os.getenv("CONTACT_RATE_LIMIT", "5"))
CONTACT_RATE_WINDOW_SECONDS = int(os.getenv("CONTACT_RATE_WINDOW_SECONDS", "60"))
