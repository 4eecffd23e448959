import logging
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        # The action itself already committed; losing its log entry must not fail the request
        db.rollback()
        logger.exception("Failed to write activity log %s/%s", resource, action)

def client_ip(request) -> Optional[str]:
    return request.client.host if request is not None and request.client else None
