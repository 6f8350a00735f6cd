from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import List, Optional
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from devforum.core import storage
from devforum.core.exceptions import AppError, ForbiddenError, InternalError
from devforum.core.security import get_current_user, get_optional_user
from devforum.crud import post as crud
from devforum.crud import report as report_crud
from devforum.db.models.user import User
from devforum.db.session import get_db
from devforum.schemas.post import DeleteResult, PostView, SaveState
from devforum.schemas.report import ReportOut, ReportReason

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[PostView])
def get_posts(
    skip: int = 0,
    limit: int = 10,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    return crud.get_posts(db, viewer.id if viewer else None, skip=skip, limit=limit)


@router.post("/", response_model=PostView, status_code=status.HTTP_201_CREATED)
async def create_post(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    code_snippet: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    tag_list = crud.parse_tags(tags)

    image_data = {}
    if screenshot and screenshot.filename:
        image_data = await storage.upload_image(
            screenshot,
            folder="post_images",
            public_id=storage.image_public_id("post", current_user.id),
        )

    try:
        new_post = crud.create_post(
            db,
            author_id=current_user.id,
            title=title,
            content=content,
            description=description,
            code_snippet=code_snippet,
            tags=tag_list,
            image_data=image_data,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        # Cleanup uploaded image if database operation failed
        storage.destroy_image(image_data.get("image_public_id"))
        raise InternalError("Failed to create post")
    except AppError:
        storage.destroy_image(image_data.get("image_public_id"))
        raise

    return crud.get_post_view(db, new_post.id, current_user.id)


@router.get("/{post_id}", response_model=PostView)
def get_post_by_id(
    post_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    return crud.get_post_view(db, post_id, viewer.id if viewer else None)


@router.put("/{post_id}", response_model=PostView)
async def update_post(
    post_id: int,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    code_snippet: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Ownership is checked before anything is uploaded
    post = crud.get_post(db, post_id)
    if post.author_id != current_user.id:
        raise ForbiddenError("Not authorized")

    changes = {
        "title": title,
        "content": content,
        "description": description,
        "code_snippet": code_snippet,
        "tags": crud.parse_tags(tags) if tags is not None else None,
    }

    image_data = None
    if screenshot and screenshot.filename:
        image_data = await storage.upload_image(
            screenshot,
            folder="post_images",
            public_id=storage.image_public_id("post", current_user.id),
        )

    try:
        crud.update_post(db, post_id, current_user.id, changes, image_data)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        if image_data:
            storage.destroy_image(image_data["image_public_id"])
        raise InternalError("Failed to update post")
    except AppError:
        if image_data:
            storage.destroy_image(image_data["image_public_id"])
        raise

    return crud.get_post_view(db, post_id, current_user.id)


@router.delete("/{post_id}", response_model=DeleteResult)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        crud.delete_post(db, post_id, current_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        raise InternalError("Failed to delete post")
    return {"success": True}


@router.post("/{post_id}/save", response_model=SaveState)
def save_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": crud.save_post(db, post_id, current_user.id)}


@router.post("/{post_id}/unsave", response_model=SaveState)
def unsave_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": crud.unsave_post(db, post_id, current_user.id)}


@router.post("/{post_id}/report", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def report_post(
    post_id: int,
    body: Optional[ReportReason] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return report_crud.create_report(db, post_id, current_user.id, body.reason if body else None)
