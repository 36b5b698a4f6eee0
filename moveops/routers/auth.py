import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError

from moveops.db import get_session
from moveops.deps import require_user
from moveops.models import User
from moveops.schemas import OperatorRead, Token, UserCreate
from moveops.security import create_access_token, hash_password, verify_password
from moveops.error import _auth_401, abort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _find_operator(session: Session, username: str) -> User | None:
    return session.exec(select(User).where(User.username == username)).first()


@router.post("/register", status_code=201)
def register(data: UserCreate, session: Session = Depends(get_session)):
    """Create a back-office operator account."""
    if _find_operator(session, data.username):
        abort(409, "USERNAME_EXISTS", "Username already taken")

    session.add(User(username=data.username, password_hash=hash_password(data.password)))
    try:
        session.commit()
    except IntegrityError:
        # lost a race against a concurrent register
        session.rollback()
        abort(409, "USERNAME_EXISTS", "Username already taken")

    logger.info("operator %s registered", data.username)
    return {"ok": True}


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    operator = _find_operator(session, form_data.username)
    if operator is None or not verify_password(form_data.password, operator.password_hash):
        logger.warning("failed login for %s", form_data.username)
        raise _auth_401("INVALID_CREDENTIALS", "Wrong username or password")

    return Token(access_token=create_access_token(operator.username))


@router.get("/me", response_model=OperatorRead)
def me(operator: User = Depends(require_user)):
    return operator
