from fastapi import APIRouter, Depends, HTTPException, status, File, Form, UploadFile
import logging
from typing import List, Optional
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from devforum.core import storage
from devforum.core.exceptions import InternalError
from devforum.core.security import get_current_user, hash_password
from devforum.crud import post as post_crud
from devforum.db.models.user import User
from devforum.db.session import get_db
from devforum.schemas.post import PostView
from devforum.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter()

email_adapter = TypeAdapter(EmailStr)


# Get user details
@router.get("/me", response_model=UserOut)
def get_user_me(current_user: User = Depends(get_current_user)):
    return current_user


# Update profile; only the fields that are sent change
@router.put("/me", response_model=UserOut)
async def update_me(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if email and email != current_user.email:
        try:
            email_adapter.validate_python(email)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid email address")
        taken = db.query(User).filter(User.email == email, User.id != current_user.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Email already registered")
        current_user.email = email

    if name:
        current_user.name = name
    if country:
        current_user.country = country
    if password:
        current_user.password = hash_password(password)

    old_public_id = None
    new_public_id = None
    if avatar and avatar.filename:
        image_data = await storage.upload_image(
            avatar,
            folder="profile_pics",
            public_id=storage.image_public_id("user", current_user.id),
        )
        old_public_id = current_user.avatar_public_id
        new_public_id = image_data["image_public_id"]
        current_user.avatar_url = image_data["image_url"]
        current_user.avatar_public_id = new_public_id

    try:
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        storage.destroy_image(new_public_id)
        raise InternalError("Profile update failed")

    # Delete old image after successful update
    storage.destroy_image(old_public_id)
    return current_user


@router.get("/me/saved-posts", response_model=List[PostView])
def get_saved_posts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return post_crud.get_saved_posts(db, current_user.id)


#get posts liked by the current user
@router.get("/me/liked-posts", response_model=List[PostView])
def get_liked_posts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return post_crud.get_liked_posts(db, current_user.id)
