"""
Environment-driven configuration for the Local Library catalog.

Values come from the process environment, optionally seeded from a
``.env`` file next to the project (see ``python-dotenv``).
"""

import os

from dotenv import load_dotenv

load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))

DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(basedir, 'data/library.sqlite')}"
DEFAULT_SECRET_KEY = "dev-secret-key"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_READ_WORKERS = 4


def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def secret_key() -> str:
    return os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)


def log_level_name() -> str:
    return os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()


def read_workers() -> int:
    """
    Size of the thread pool used for concurrent store reads.

    Invalid or non-positive values fall back to the default.
    """
    raw = os.getenv("CATALOG_READ_WORKERS", "")
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_READ_WORKERS
    return value if value > 0 else DEFAULT_READ_WORKERS


def flask_config() -> dict:
    """
    Build the Flask config mapping from the environment.
    """
    return {
        "SECRET_KEY": secret_key(),
        "SQLALCHEMY_DATABASE_URI": database_url(),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "CATALOG_READ_WORKERS": read_workers(),
        "LOG_LEVEL": log_level_name(),
    }
