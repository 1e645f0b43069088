# storefront/routers/account.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.dependencies import get_db
from storefront.schemas.cart import MigrationRequest, MigrationResult
from storefront.services import cart as cart_service

router = APIRouter()


@router.post("/account/migrate", response_model=MigrationResult)
def migrate_guest_data(
    request_data: MigrationRequest,
    db: Session = Depends(get_db),
):
    """
    Вызывается клиентом сразу после входа: гостевые корзина и избранное
    переходят к пользователю. Повторный вызов безопасен.
    """
    return cart_service.migrate_guest_to_user(db, request_data.user_id)
