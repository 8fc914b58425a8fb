"""
Dependencies module - reusable FastAPI dependencies for route handlers.

The main dependency here is get_session_context, which validates the
bearer token and turns it into the SessionContext every store, the
classifier and the handlers are scoped to.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from aura.core.security import decode_access_token
from aura.core.session import SessionContext
from aura.db.session import get_db
from aura.services.intent_service import IntentService, intent_service
from aura.services.notifications import NotificationGateway, notification_scheduler
from aura.services.store.base import RecordStore, StoreResult
from aura.services.store.chat_log import ChatLogRepository
from aura.services.store.sql_store import SqlRecordStore

# ---------------------------------------------------------------------------
# SECURITY SCHEME
# ---------------------------------------------------------------------------
# HTTPBearer: Extracts tokens from the "Authorization: Bearer <token>" header
# and raises 401 if the header is missing
security = HTTPBearer()


def get_session_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SessionContext:
    """
    Validate the JWT and return who the request acts for.

    Raises:
        401 Unauthorized: token invalid, expired or without a "sub" claim
    """
    token = credentials.credentials

    # Same error for every case so callers can't tell what was wrong
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    return SessionContext(user_id=str(user_id), access_token=token)


# ---------------------------------------------------------------------------
# ADAPTERS
# ---------------------------------------------------------------------------

def get_record_store(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> RecordStore:
    return SqlRecordStore(session, db)


def get_chat_log(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ChatLogRepository:
    return ChatLogRepository(session, db)


def get_notification_gateway() -> NotificationGateway:
    return notification_scheduler


def get_intent_service() -> IntentService:
    return intent_service


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------

def unwrap(result: StoreResult):
    """
    Return the data of a successful store result or raise the HTTP error.

    Raises:
        404: the record does not exist (or isn't the user's)
        400: any other store failure, with its message as detail
    """
    if result.success:
        return result.data
    if result.error is not None and result.error.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error_message)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error_message)
