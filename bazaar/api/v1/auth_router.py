from datetime import timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bazaar.api.deps import get_db, get_current_user, get_token
from bazaar.schemas.user_schema import (
    BalanceUpdate,
    BioUpdate,
    PasswordUpdate,
    Token,
    UserLogin,
    UserOut,
    UserRegister,
)
from bazaar.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])
auth_service = AuthService()

@router.post("/register", response_model=UserOut, status_code=201)
def register(data: UserRegister, db: Session = Depends(get_db)):
    return auth_service.register(db, data.username, data.password, data.bio)

@router.post("/login", response_model=Token)
def login(data: UserLogin, db: Session = Depends(get_db)):
    result = auth_service.login(db, data.username, data.password)
    expires_ms = int(result["expires_at"].replace(tzinfo=timezone.utc).timestamp() * 1000)
    return {"user": result["user"], "token": result["token"], "expires_at": expires_ms}

@router.post("/logout", status_code=204)
def logout(token: str = Depends(get_token), db: Session = Depends(get_db)):
    auth_service.logout(db, token)

@router.get("/me", response_model=UserOut)
def get_me(current_user = Depends(get_current_user), db: Session = Depends(get_db)):
    return auth_service.refresh_user(db, current_user)

@router.put("/me/password", response_model=UserOut)
def update_password(
    data: PasswordUpdate,
    token: str = Depends(get_token),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return auth_service.update_password(db, current_user, data.old_password, data.new_password, keep_token=token)

@router.put("/me/bio", response_model=UserOut)
def update_bio(data: BioUpdate, current_user = Depends(get_current_user), db: Session = Depends(get_db)):
    return auth_service.update_bio(db, current_user, data.bio)

@router.put("/me/balance", response_model=UserOut)
def update_balance(data: BalanceUpdate, current_user = Depends(get_current_user), db: Session = Depends(get_db)):
    return auth_service.update_balance(db, current_user, data.amount)
