from fastapi import APIRouter, Depends

from api.deps import get_current_user
from models.user import User
from schemas.auth import UserOut, UserProfileResponse


router = APIRouter(prefix="/user", tags=["User"])


# ---------------- Get Current User ----------------
@router.get("/me", response_model=UserProfileResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return UserProfileResponse(user=UserOut.model_validate(current_user))
