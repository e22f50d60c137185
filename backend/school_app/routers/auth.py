from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from school_app import schemas, crud, models
from school_app.core.security import create_access_token
from school_app.dependencies import get_db, get_current_user

router = APIRouter(tags=["Authentication"])

@router.post(
    "/register",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student or teacher account"
)
def register(user_data: schemas.RegisterRequest, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, email=user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An account with this email already exists."
        )
    return crud.create_user(db=db, user_data=user_data)

@router.post(
    "/token",
    response_model=schemas.Token,
    summary="User Login for Access Token"
)
def login(user_credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = crud.authenticate_user(db, email=user_credentials.email, password=user_credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}

@router.get(
    "/me",
    response_model=schemas.UserOut,
    summary="Get the signed-in account and its role"
)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user
