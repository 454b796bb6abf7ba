import os
import re

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studio_access.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_STAGE = ENV_NORMALIZED in {"stage", "staging"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

PLATFORM_NAME = os.getenv("PLATFORM_NAME", "Studiio").strip() or "Studiio"
PUBLIC_BASE_DOMAIN = os.getenv("PUBLIC_BASE_DOMAIN", "studiio.au").strip().lower()
DEV_BOOTSTRAP_ALLOW = _flag("DEV_BOOTSTRAP_ALLOW", "")

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

_cors_origin_regex_env = os.getenv("CORS_ALLOW_ORIGIN_REGEX", "").strip()
if _cors_origin_regex_env:
    CORS_ALLOW_ORIGIN_REGEX = _cors_origin_regex_env
elif not IS_DEV and PUBLIC_BASE_DOMAIN:
    CORS_ALLOW_ORIGIN_REGEX = rf"^https://([a-z0-9-]+\.)?{re.escape(PUBLIC_BASE_DOMAIN)}$"
else:
    CORS_ALLOW_ORIGIN_REGEX = None

# Sessão (cookie assinado)
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_MAX_AGE_SECONDS = int(os.getenv("SESSION_MAX_AGE_SECONDS", "2592000"))
SESSION_COOKIE_SECURE = _flag("SESSION_COOKIE_SECURE", "0" if IS_DEV or IS_TEST else "1")
SESSION_COOKIE_HTTPONLY = _flag("SESSION_COOKIE_HTTPONLY", "1")
SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "lax").strip().lower()
if SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    SESSION_COOKIE_SAMESITE = "lax"

_cookie_domain_env = os.getenv("SESSION_COOKIE_DOMAIN", "").strip()
if _cookie_domain_env:
    SESSION_COOKIE_DOMAIN = _cookie_domain_env
elif (IS_PROD or IS_STAGE) and PUBLIC_BASE_DOMAIN:
    SESSION_COOKIE_DOMAIN = f".{PUBLIC_BASE_DOMAIN}"
else:
    SESSION_COOKIE_DOMAIN = None

# Códigos de login (OTP)
MASTER_DISCRIMINATOR = "MASTER"
LOGIN_CODE_TTL_SECONDS = int(os.getenv("LOGIN_CODE_TTL_SECONDS", "600"))
IMPERSONATION_CODE_TTL_SECONDS = int(os.getenv("IMPERSONATION_CODE_TTL_SECONDS", "60"))
# Only honoured in dev; lets local logins use a known code.
DEV_FIXED_LOGIN_CODE = os.getenv("DEV_FIXED_LOGIN_CODE", "").strip() if IS_DEV else ""

# Envio de email
MAIL_PROVIDER = os.getenv("MAIL_PROVIDER", "log").strip().lower()
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails").strip()
MAIL_FROM = os.getenv("MAIL_FROM", f"{PLATFORM_NAME} <no-reply@{PUBLIC_BASE_DOMAIN}>").strip()
MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))
