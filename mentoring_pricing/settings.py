import os
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
DEVELOPMENT_MODE = os.getenv("DEVELOPMENT_MODE", "dev").lower()  # expected "dev" or "prod"
DEBUG = DEVELOPMENT_MODE.startswith("dev")

ALLOWED_HOSTS = ["*"] if DEBUG else [os.getenv("SITE_DOMAIN", "").replace("https://", "").replace("http://", "")]

if not DEBUG:
    CSRF_TRUSTED_ORIGINS = [os.getenv("SITE_DOMAIN")]
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
else:
    CSRF_TRUSTED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]

# Applications
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "pricing",
    "bundles",
    "testing",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "mentoring_pricing.urls"

TEMPLATES = [{
    "BACKEND": "django.template.backends.django.DjangoTemplates",
    "DIRS": [],
    "APP_DIRS": True,
    "OPTIONS": {"context_processors": [
        "django.template.context_processors.debug",
        "django.template.context_processors.request",
        "django.contrib.auth.context_processors.auth",
        "django.contrib.messages.context_processors.messages",
    ]},
}]

WSGI_APPLICATION = "mentoring_pricing.wsgi.application"

# Database selection based on DEVELOPMENT_MODE
if DEVELOPMENT_MODE.startswith("dev"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }
else:
    # DATABASE_URL wins when present (managed Postgres); discrete vars otherwise
    DATABASES = {
        "default": dj_database_url.config(
            default="postgres://{user}:{password}@{host}:{port}/{name}".format(
                user=os.getenv("DATABASE_USER", ""),
                password=os.getenv("DATABASE_PASSWORD", ""),
                host=os.getenv("DATABASE_HOST", "db"),
                port=os.getenv("DATABASE_PORT", "5432"),
                name=os.getenv("DATABASE_NAME", ""),
            ),
            conn_max_age=600,
        )
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Internationalization
LANGUAGE_CODE = "id"
TIME_ZONE = os.getenv("TIME_ZONE", "Asia/Jakarta")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

LOGIN_URL = "/admin/login/"

# Pricing defaults (used only when no active session_pricing rule exists)
PRICING_DEFAULT_MENTOR_FEE_PERCENTAGE = int(os.getenv("PRICING_DEFAULT_MENTOR_FEE_PERCENTAGE", 70))
PRICING_DEFAULT_PLATFORM_FEE_PERCENTAGE = int(os.getenv("PRICING_DEFAULT_PLATFORM_FEE_PERCENTAGE", 30))
PRICING_LOG_LEVEL = os.getenv("PRICING_LOG_LEVEL", "INFO").upper()

# Scenario runner guard
ALLOW_TEST_SCENARIOS = os.getenv("ALLOW_TEST_SCENARIOS", "True" if DEBUG else "False") == "True"

# Stripe (load from env; no default, missing key means Stripe is disabled)
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "pricing": {"handlers": ["console"], "level": PRICING_LOG_LEVEL, "propagate": False},
        "bundles": {"handlers": ["console"], "level": PRICING_LOG_LEVEL, "propagate": False},
    },
}
