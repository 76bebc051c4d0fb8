"""
Django settings for the organization token service.

Environment values are read through python-decouple so that local runs pick
them up from a .env file and deployments from the process environment.
"""
from datetime import timedelta
from pathlib import Path

from decouple import config, Csv

from .logging import LOGGING  # noqa: F401

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('DJANGO_SECRET_KEY', default='orgtoken-insecure-development-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'graphene_django',
    'ledger',
    'organizations',
    'votations',
]

MIDDLEWARE = [
    'config.middleware.CloseDbConnectionsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

ASGI_APPLICATION = 'config.asgi.application'

DATABASES = {
    'default': {
        'ENGINE': config('DB_ENGINE', default='django.db.backends.sqlite3'),
        'NAME': config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        'USER': config('DB_USER', default=''),
        'PASSWORD': config('DB_PASSWORD', default=''),
        'HOST': config('DB_HOST', default=''),
        'PORT': config('DB_PORT', default=''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

GRAPHENE = {
    'SCHEMA': 'config.schema.schema',
}

# Token sale (all native values in micro units, 6 decimals)
TOKEN_TREASURY_ADDRESS = config('TOKEN_TREASURY_ADDRESS', default='orgtoken-treasury')
TOKEN_SALE_BASE_PRICE = config('TOKEN_SALE_BASE_PRICE', default=10_000, cast=int)      # 0.01
TOKEN_SALE_PRICE_DELTA = config('TOKEN_SALE_PRICE_DELTA', default=1_000, cast=int)     # 0.001

# Votations
VOTATION_VOTING_PERIOD_SECONDS = config('VOTATION_VOTING_PERIOD_SECONDS', default=7 * 24 * 60 * 60, cast=int)
VOTATION_MIN_OPTIONS = 2
VOTATION_MAX_OPTIONS = 10

# Caller identity: signed tokens carrying an `address` claim, sent as
# "Authorization: JWT <token>"
GRAPHQL_JWT = {
    'JWT_SECRET_KEY': config('JWT_SECRET_KEY', default=SECRET_KEY),
    'JWT_ALGORITHM': 'HS256',
    'JWT_AUTH_HEADER_PREFIX': 'JWT',
    'JWT_VERIFY_EXPIRATION': True,
    'JWT_EXPIRATION_DELTA': timedelta(hours=config('JWT_EXPIRATION_HOURS', default=24, cast=int)),
}
