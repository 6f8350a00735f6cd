from pydantic import BaseModel


class LikeState(BaseModel):
    liked: bool
    count: int


class HelpfulState(BaseModel):
    helpful: bool
    count: int
