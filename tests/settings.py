"""Settings for the pytest suite.

pytest-django imports this module before any conftest runs, so the
secret key has to be in place before ``config.settings`` reads it.
The default database is a SQLite file so threads share it; writers
take the lock when their transaction begins and wait for it.  Set
``TEST_DATABASE_URL`` to run against MySQL/PostgreSQL with row locks.
"""

import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from decouple import config  # noqa: E402
from dj_database_url import parse as db_url  # noqa: E402

from config.settings import *  # noqa: E402,F401,F403

_SQLITE_PATH = os.path.join(tempfile.mkdtemp(prefix="storefront-db-"), "test.sqlite3")

DATABASES = {
    "default": config(
        "TEST_DATABASE_URL", default=f"sqlite:///{_SQLITE_PATH}", cast=db_url
    )
}
if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    DATABASES["default"]["TEST"] = {"NAME": DATABASES["default"]["NAME"]}
    DATABASES["default"]["OPTIONS"] = {"timeout": 20, "transaction_mode": "IMMEDIATE"}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "storefront-tests",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

MEDIA_ROOT = tempfile.mkdtemp(prefix="storefront-media-")

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
