"""Promo Code Routes — create and list promo codes (redemption lives under users)."""

from fastapi import APIRouter, Depends, Query, status

from movr.infrastructure.database import DatabaseSessionManager, get_db_manager
from movr.schemas.promo_code import PromoCodeCreate, PromoCodeRecord
from movr.services import promo_codes

router = APIRouter(prefix="/api/v1/promo-codes", tags=["promo-codes"])


@router.post("", response_model=PromoCodeRecord, status_code=status.HTTP_201_CREATED)
async def create_promo_code(
    body: PromoCodeCreate,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await promo_codes.create_promo_code(
        db, body.code, body.description, body.expiration_time, body.rules,
    )


@router.get("", response_model=list[PromoCodeRecord])
async def list_promo_codes(
    limit: int | None = Query(None, ge=1, le=1000),
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await promo_codes.get_promo_codes(db, limit)
