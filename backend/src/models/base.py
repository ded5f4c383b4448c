"""Base SQLAlchemy declarative base for all models"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base


def utcnow() -> datetime:
    """Timezone-aware timestamp used for created_at/updated_at defaults.

    Generated in Python rather than via server_default so SQLite (tests)
    and PostgreSQL store identical values.
    """
    return datetime.now(timezone.utc)


Base = declarative_base()
