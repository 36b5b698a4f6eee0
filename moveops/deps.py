from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select

from moveops.db import get_session
from moveops.models import User
from moveops.security import TokenError, decode_token
from moveops.error import _auth_401
from moveops.services.executions import MoveExecutionService
from moveops.services.repository import SqlExecutionRepository

# auto_error=False so a missing token gets our own error format
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def require_user(
    token: str | None = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    if not token:
        raise _auth_401("NOT_AUTHENTICATED", "Not logged in or session expired")

    try:
        username = decode_token(token)
    except TokenError as e:
        raise _auth_401(e.code, str(e))

    # token is fine but the account is gone
    user = session.exec(select(User).where(User.username == username)).first()
    if not user:
        raise _auth_401("USER_NOT_FOUND", "User does not exist")

    return user


def get_execution_service(session: Session = Depends(get_session)) -> MoveExecutionService:
    return MoveExecutionService(SqlExecutionRepository(session))
