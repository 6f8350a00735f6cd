from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from devforum.db.session import get_db
from devforum.db.models.user import User
from devforum.crud import reaction as crud
from devforum.schemas.reaction import HelpfulState, LikeState
from devforum.core.security import get_current_user

router = APIRouter()


@router.post("/posts/{post_id}/like", response_model=LikeState)
def toggle_post_like(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = crud.toggle(db, current_user.id, post_id, "post_like")
    return {"liked": result.active, "count": result.count}


@router.post("/posts/{post_id}/helpful", response_model=HelpfulState)
def toggle_post_helpful(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = crud.toggle(db, current_user.id, post_id, "post_helpful")
    return {"helpful": result.active, "count": result.count}


@router.post("/comments/{comment_id}/like", response_model=LikeState)
def toggle_comment_like(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = crud.toggle(db, current_user.id, comment_id, "comment_like")
    return {"liked": result.active, "count": result.count}


@router.post("/comments/{comment_id}/helpful", response_model=HelpfulState)
def toggle_comment_helpful(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = crud.toggle(db, current_user.id, comment_id, "comment_helpful")
    return {"helpful": result.active, "count": result.count}
