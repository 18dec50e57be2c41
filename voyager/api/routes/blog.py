"""Blog post and comment moderation routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from voyager.api import deps
from voyager.db.models import Comment, User
from voyager.schemas.blog import (
    BlogPostCreate,
    BlogPostEnvelope,
    BlogPostList,
    BlogPostRead,
    BlogPostUpdate,
    CommentCreate,
    CommentRead,
    CommentStatusUpdate,
)
from voyager.schemas.common import Success
from voyager.services.blog import BlogService

router = APIRouter(tags=["blog"])


@router.get("/blog", response_model=BlogPostList)
async def list_posts(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> BlogPostList:
    """List the caller's posts, optionally filtered by status and a title/excerpt search."""

    posts = await blog.list_posts(user, status_filter=status_filter, search=search)
    return BlogPostList(posts=[BlogPostRead.model_validate(p) for p in posts])


@router.post("/blog", response_model=BlogPostEnvelope, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: BlogPostCreate,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> BlogPostEnvelope:
    post = await blog.create_post(user, payload)
    return BlogPostEnvelope(post=BlogPostRead.model_validate(post))


@router.get("/blog/{post_id}", response_model=BlogPostEnvelope)
async def read_post(
    post_id: int,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> BlogPostEnvelope:
    post = await blog.get_post(user, post_id)
    return BlogPostEnvelope(post=BlogPostRead.model_validate(post))


@router.patch("/blog/{post_id}", response_model=BlogPostEnvelope)
async def update_post(
    post_id: int,
    payload: BlogPostUpdate,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> BlogPostEnvelope:
    post = await blog.update_post(user, post_id, payload)
    return BlogPostEnvelope(post=BlogPostRead.model_validate(post))


@router.delete("/blog/{post_id}", response_model=Success)
async def delete_post(
    post_id: int,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> Success:
    await blog.delete_post(user, post_id)
    return Success()


@router.get("/blog/{post_id}/comments", response_model=List[CommentRead])
async def list_comments(
    post_id: int,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> List[Comment]:
    return list(await blog.list_comments(user, post_id))


@router.post("/blog/{post_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: int,
    payload: CommentCreate,
    blog: BlogService = Depends(deps.get_blog_service),
) -> Comment:
    """Public endpoint for readers; new comments wait for moderation."""

    return await blog.add_comment(post_id, payload)


@router.patch("/comments/{comment_id}", response_model=CommentRead)
async def update_comment_status(
    comment_id: int,
    payload: CommentStatusUpdate,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> Comment:
    return await blog.set_comment_status(user, comment_id, payload.status)


@router.delete("/comments/{comment_id}", response_model=Success)
async def delete_comment(
    comment_id: int,
    user: User = Depends(deps.get_current_user),
    blog: BlogService = Depends(deps.get_blog_service),
) -> Success:
    await blog.delete_comment(user, comment_id)
    return Success()
