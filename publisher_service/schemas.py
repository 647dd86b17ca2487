from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from .models import Role


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Role = Role.USER


class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: Role

    class Config:
        from_attributes = True


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SessionOut(BaseModel):
    user_id: int
    name: str
    role: Role


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=20000)


class PostUpdate(PostCreate):
    pass


class PostOut(BaseModel):
    id: int
    title: str
    content: str
    publisher_id: int
    created_at: datetime
    like_count: int = 0

    class Config:
        from_attributes = True


class PublisherOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class PostView(BaseModel):
    id: int
    title: str
    content: str
    created_at: datetime
    publisher: PublisherOut
    like_count: int = Field(description="Total likes on the post")
    liked_by_viewer: Optional[bool] = Field(
        default=None, description="Whether the viewer liked the post; null for anonymous reads"
    )


class FeedPage(BaseModel):
    items: List[PostView]
    next_cursor: Optional[int] = Field(default=None, description="Id of the last item; absent on the last page")


class OkOut(BaseModel):
    ok: bool = True


class LikeToggleResult(BaseModel):
    liked: bool = Field(description="Whether the post is liked by the user after the toggle")


class DayPoint(BaseModel):
    date: str = Field(description="UTC calendar day, YYYY-MM-DD")
    posts: int
    likes: int


class AnalyticsOut(BaseModel):
    days: int
    total_posts: int
    total_likes: int
    series: List[DayPoint]
