"""
Own profile (settings page) endpoints
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, require_user_id
from workhub.application.profiles import UpdateNameUseCase, get_profile

router = APIRouter(prefix="/api/profile", tags=["profile"])


class UpdateProfileRequest(BaseModel):
    name: str


@router.get("")
def my_profile(request: Request, db: Session = Depends(get_db)):
    user_id = require_user_id(request)
    return get_profile(db, user_id).model_dump(mode="json")


@router.patch("")
def update_profile(req: UpdateProfileRequest, request: Request, db: Session = Depends(get_db)):
    user_id = require_user_id(request)
    UpdateNameUseCase(db).execute(user_id, req.name)
    return {"success": True}
