# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: user directory."""

from fastapi import APIRouter, Depends, HTTPException

from tracker.core.dependencies import get_user_service
from tracker.schemas import UserCreate, UserOut
from tracker.services.user_service import UserService

router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.post("/users", status_code=201, response_model=UserOut)
def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
):
    return service.create_user(login=payload.login, global_admin=payload.global_admin)


@router.get("/users", response_model=list[UserOut])
def list_users(service: UserService = Depends(get_user_service)):
    return service.list_users()


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    try:
        return service.get_user(user_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
