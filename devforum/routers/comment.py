from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from typing import List, Optional
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from devforum.core import storage
from devforum.core.exceptions import AppError, InternalError
from devforum.core.security import get_current_user, get_optional_user
from devforum.crud import comment as crud
from devforum.db.models.user import User
from devforum.db.session import get_db
from devforum.schemas.comment import CommentThread, CommentUpdate, CommentView

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/post/{post_id}", response_model=List[CommentView])
def get_post_comments(
    post_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    return crud.list_comments(db, post_id, viewer.id if viewer else None)


@router.get("/post/{post_id}/thread", response_model=List[CommentThread])
def get_post_comment_thread(
    post_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    return crud.build_thread(crud.list_comments(db, post_id, viewer.id if viewer else None))


@router.post("/post/{post_id}", response_model=CommentView, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: int,
    content: Optional[str] = Form(None),
    parent_id: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    image_data = {}
    if image and image.filename:
        image_data = await storage.upload_image(
            image,
            folder="comment_images",
            public_id=storage.image_public_id("comment", current_user.id),
        )

    try:
        comment = crud.create_comment(
            db,
            post_id=post_id,
            author_id=current_user.id,
            content=content,
            parent_id=parent_id,
            image_data=image_data,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {str(e)}")
        storage.destroy_image(image_data.get("image_public_id"))
        raise InternalError("Failed to add comment")
    except AppError:
        storage.destroy_image(image_data.get("image_public_id"))
        raise

    return crud.to_views(db, [comment], current_user.id)[0]


@router.put("/{comment_id}", response_model=CommentView)
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    comment = crud.update_comment(db, comment_id, current_user.id, body.content)
    return crud.to_views(db, [comment], current_user.id)[0]


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    crud.delete_comment(db, comment_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
