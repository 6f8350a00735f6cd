import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, File, Form, UploadFile
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from devforum.core import storage
from devforum.core.exceptions import AppError, InternalError
from devforum.db.models.user import User
from devforum.schemas.user import UserCreate, UserOut
from devforum.schemas.token import Token
from devforum.core.security import hash_password, verify_password, create_access_token, get_current_user
from devforum.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


# Register with an optional avatar
@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    country: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    try:
        user_in = UserCreate(name=name, email=email, password=password, country=country)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid email address")

    user = db.query(User).filter(User.email == user_in.email).first()
    if user:
        raise HTTPException(status_code=400, detail="Email already registered")
    new_user = User(
        name=user_in.name,
        email=user_in.email,
        country=user_in.country,
        password=hash_password(user_in.password),
    )
    db.add(new_user)

    image_data = None
    try:
        if avatar and avatar.filename:
            db.flush()
            image_data = await storage.upload_image(
                avatar,
                folder="profile_pics",
                public_id=storage.image_public_id("user", new_user.id),
            )
            new_user.avatar_url = image_data["image_url"]
            new_user.avatar_public_id = image_data["image_public_id"]
        db.commit()
        db.refresh(new_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        if image_data:
            storage.destroy_image(image_data["image_public_id"])
        raise InternalError("Registration failed")
    except AppError:
        db.rollback()
        raise

    return new_user


@router.post("/login", response_model=Token)
def login(db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    user = db.query(User).filter(User.email == form_data.username).first()
    if not user or not verify_password(form_data.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    return Token(access_token=access_token, token_type="bearer", role=user.role, user_id=user.id)


@router.get("/validate")
def validate_token(current_user: User = Depends(get_current_user)):
    return {"valid": True}
