from fastapi import APIRouter, Depends, status

from catalog.dependencies import get_auth_service
from catalog.schemas import Token, UserLogin, UserRegister
from catalog.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Token)
async def register(data: UserRegister, auth: AuthService = Depends(get_auth_service)):
    return Token(access_token=await auth.register(data))


@router.post("/login", response_model=Token)
async def login(data: UserLogin, auth: AuthService = Depends(get_auth_service)):
    return Token(access_token=await auth.login(data))
