from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core.errors import NotFoundError
from ideas_api.dependencies import get_current_user_id, get_db
from ideas_api.repositories import UserRepository
from ideas_api.schemas import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await UserRepository(db).get_active_by_id(user_id)
    if not user:
        raise NotFoundError("user not found")
    return UserResponse.model_validate(user)
