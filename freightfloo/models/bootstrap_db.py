# bootstrap_db.py
# Export Base for ORM models. Run this file as a script to create all tables.
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from freightfloo.core.config import settings

Base = declarative_base()


def run_bootstrap():
    """Create every marketplace table. Call when running this file as __main__."""
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL not set in environment")
    # Importing the package registers every model on Base.metadata
    import freightfloo.models  # noqa: F401

    eng = create_engine(settings.DATABASE_URL, echo=True, future=True)
    Base.metadata.create_all(eng)
    return eng


if __name__ == "__main__":
    run_bootstrap()
    print("Tables created.")
