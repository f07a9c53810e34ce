"""Django settings for the canteen ordering service."""

import os

from logging_config import setup_logging

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

INSTALLED_APPS = [
    "canteen",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "canteen_site.urls"
WSGI_APPLICATION = "canteen_site.wsgi.application"

# Orders and stock live in DynamoDB; Django itself keeps no database
DATABASES = {}

USE_TZ = True
TIME_ZONE = os.getenv("TIME_ZONE", "Asia/Kolkata")

# logging is configured by logging_config, not Django's dictConfig
LOGGING_CONFIG = None
setup_logging()
