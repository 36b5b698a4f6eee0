from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from moveops.db import get_session
from moveops.deps import require_user
from moveops.error import abort
from moveops.models import Deal, User
from moveops.schemas import DealCreate, DealRead

router = APIRouter(prefix="/deals", tags=["deals"])


@router.get("", response_model=list[DealRead])
def list_deals(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    stmt = select(Deal).order_by(Deal.move_date.desc(), Deal.id.desc())
    return session.exec(stmt.offset(offset).limit(limit)).all()


@router.post("", response_model=DealRead)
def create_deal(
    data: DealCreate,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    deal = Deal(**data.model_dump())
    session.add(deal)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        abort(409, "DEAL_EXISTS", f"Deal with pipedrive_id {data.pipedrive_id} already exists")
    session.refresh(deal)
    return deal


@router.get("/{deal_id}", response_model=DealRead)
def get_deal(
    deal_id: int,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    deal = session.get(Deal, deal_id)
    if not deal:
        abort(404, "NOT_FOUND", "Deal not found")
    return deal
