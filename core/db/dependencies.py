from typing import Iterator

from sqlalchemy.orm import Session
from core.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Yield a request-scoped session, rolling back anything left uncommitted."""
    db: Session = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
