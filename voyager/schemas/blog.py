"""Schemas for blog posts and reader comments."""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

PostStatus = Literal["draft", "published"]
CommentStatus = Literal["pending", "approved", "spam"]


class BlogPostCreate(BaseModel):
    title: str = ""
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None
    publish_date: Optional[date] = None


class BlogPostUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    title: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None
    publish_date: Optional[date] = None


class BlogPostRead(BaseModel):
    id: int
    author_id: int
    title: str
    excerpt: str
    content: str
    cover_image_url: str
    category: str
    tags: List[str]
    status: PostStatus
    publish_date: Optional[date]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BlogPostEnvelope(BaseModel):
    post: BlogPostRead


class BlogPostList(BaseModel):
    posts: List[BlogPostRead]


class CommentCreate(BaseModel):
    author_name: str = Field(..., min_length=1, max_length=255)
    author_email: Optional[EmailStr] = None
    content: str = Field(..., min_length=1)


class CommentRead(BaseModel):
    id: int
    post_id: int
    author_name: str
    author_email: Optional[str]
    content: str
    status: CommentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentStatusUpdate(BaseModel):
    status: CommentStatus
