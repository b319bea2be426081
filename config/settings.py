"""
Django settings for running the league engine on its own (management
commands and tests). Projects embedding the ``league`` app only need to add
it to INSTALLED_APPS and, optionally, a ``LEAGUE`` settings dict.
"""
from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('DJANGO_SECRET_KEY', default='league-engine-insecure-key')

DEBUG = config('DJANGO_DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('DJANGO_ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'league',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'league-engine',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LEAGUE = {
    'LOCK_WINDOW_MINUTES': config('LEAGUE_LOCK_WINDOW_MINUTES', default=30, cast=int),
    'MATCHDAY_TIME_ZONE': config('LEAGUE_MATCHDAY_TIME_ZONE', default='America/Los_Angeles'),
    'DATA_BASE_URL': config('LEAGUE_DATA_BASE_URL', default='http://localhost:8000/'),
    'DEMO_DATA_PATH': config('LEAGUE_DEMO_DATA_PATH', default='demo/'),
    'REQUEST_TIMEOUT': config('LEAGUE_REQUEST_TIMEOUT', default=15, cast=int),
    'FEED_CACHE_SECONDS': config('LEAGUE_FEED_CACHE_SECONDS', default=60, cast=int),
}

LOG_LEVEL = config('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'league': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
