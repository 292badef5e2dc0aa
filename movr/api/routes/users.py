"""User Routes — create, list, read and delete users within a city."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from movr.infrastructure.database import DatabaseSessionManager, get_db_manager
from movr.schemas.promo_code import AppliedPromo, PromoCodeApply
from movr.schemas.user import UserCreate, UserRecord
from movr.services import promo_codes, users

router = APIRouter(prefix="/api/v1/cities/{city}/users", tags=["users"])


@router.post("", response_model=UserRecord, status_code=status.HTTP_201_CREATED)
async def create_user(
    city: str, body: UserCreate,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await users.add_user(
        db, city, body.name, address=body.address, credit_card=body.credit_card,
    )


@router.get("", response_model=list[UserRecord])
async def list_users(
    city: str,
    limit: int | None = Query(None, ge=1, le=1000),
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await users.get_users(db, city, limit)


@router.get("/{user_id}", response_model=UserRecord)
async def get_user(
    city: str, user_id: UUID,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await users.get_user(db, city, user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    city: str, user_id: UUID,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    await users.remove_user(db, city, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{user_id}/promo-codes", response_model=AppliedPromo,
    status_code=status.HTTP_201_CREATED,
)
async def apply_promo_code(
    city: str, user_id: UUID, body: PromoCodeApply,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await promo_codes.apply_promo_code(db, city, user_id, body.code)
