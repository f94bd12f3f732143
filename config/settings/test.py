from .base import *  # noqa

# Threaded checkout tests share this file. Writers take the lock at BEGIN.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test.sqlite3",  # noqa: F405
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": BASE_DIR / "test_store.sqlite3"},  # noqa: F405
    }
}

CONSTANCE_BACKEND = "constance.backends.memory.MemoryBackend"

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

STORE_TIME_ZONE = "America/Lima"
STORE_CURRENCY_SYMBOL = "S/"

LOGGING["loggers"]["apps"].update(handlers=[], propagate=True)  # noqa: F405
