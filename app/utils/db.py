from contextlib import contextmanager
import logging
from sqlalchemy.exc import IntegrityError
from models import db
from app.services.exceptions import OrderServiceError

@contextmanager
def transactional(message="DB transaction failed"):
    """Commit on success; roll back and re-raise on any error."""
    try:
        yield
        db.session.commit()
    except OrderServiceError as e:
        logging.info(f"{message}: %s", e.message)
        db.session.rollback()
        raise
    except IntegrityError as e:
        # Lost idempotency races land here; the caller resolves them
        logging.info(f"{message}: constraint violated: %s", e.orig)
        db.session.rollback()
        raise
    except Exception as e:
        logging.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise
