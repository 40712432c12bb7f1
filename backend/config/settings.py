import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-dev-key-change-in-production")

DEBUG = os.environ.get("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "corsheaders",
    "api",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
ASGI_APPLICATION = "config.asgi.application"

# No models are used; provide a minimal SQLite DB so Django's test runner
# and pytest-django can set up / tear down without errors.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# CORS — allow all origins in dev; restrict in prod via env
CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = [
    o for o in os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if o
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "api": {"handlers": ["console"], "level": LOG_LEVEL},
    },
}

# Distance Matrix provider; the key is required for /calculate-route
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")
GOOGLE_MAPS_URL = os.environ.get("GOOGLE_MAPS_URL", "https://maps.googleapis.com")

# Stop counts up to ANNEALING_MAX_STOPS are annealed, larger ones built greedily
ROUTE_OPTIMIZER = {
    "ANNEALING_MAX_STOPS": int(os.environ.get("ROUTE_OPTIMIZER_ANNEALING_MAX_STOPS", "10")),
    "INITIAL_TEMPERATURE": float(os.environ.get("ROUTE_OPTIMIZER_INITIAL_TEMPERATURE", "1000")),
    "COOLING_RATE": float(os.environ.get("ROUTE_OPTIMIZER_COOLING_RATE", "0.995")),
    "STOP_TEMPERATURE": float(os.environ.get("ROUTE_OPTIMIZER_STOP_TEMPERATURE", "1")),
}
