"""Blog post authoring and comment moderation."""

import logging
from typing import Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from voyager.db.models import (
    COMMENT_APPROVED,
    COMMENT_PENDING,
    COMMENT_SPAM,
    POST_DRAFT,
    POST_PUBLISHED,
    BlogPost,
    Comment,
    User,
)
from voyager.schemas.blog import BlogPostCreate, BlogPostUpdate, CommentCreate

logger = logging.getLogger("voyager.blog")

POST_STATUSES = (POST_DRAFT, POST_PUBLISHED)
COMMENT_STATUSES = (COMMENT_PENDING, COMMENT_APPROVED, COMMENT_SPAM)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BlogService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_posts(
        self, author: User, status_filter: Optional[str] = None, search: Optional[str] = None
    ) -> Sequence[BlogPost]:
        """Posts written by `author`, newest first.

        Unknown status values are ignored rather than rejected; `search`
        matches title or excerpt case-insensitively.
        """
        query = select(BlogPost).where(BlogPost.author_id == author.id)
        if status_filter in POST_STATUSES:
            query = query.where(BlogPost.status == status_filter)
        if search:
            pattern = f"%{_escape_like(search.lower())}%"
            query = query.where(
                or_(
                    func.lower(BlogPost.title).like(pattern, escape="\\"),
                    func.lower(BlogPost.excerpt).like(pattern, escape="\\"),
                )
            )
        query = query.order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
        result = await self.session.scalars(query)
        return result.all()

    async def create_post(self, author: User, payload: BlogPostCreate) -> BlogPost:
        title = (payload.title or "").strip()
        if not title:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")

        post = BlogPost(
            author_id=author.id,
            title=title,
            excerpt=(payload.excerpt or "").strip(),
            content=payload.content or "",
            cover_image_url=payload.cover_image_url or "",
            category=payload.category or "",
            tags=list(payload.tags or []),
            status=payload.status or POST_DRAFT,
            publish_date=payload.publish_date,
        )
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        logger.info("User id=%s created post id=%s", author.id, post.id)
        return post

    async def get_post(self, author: User, post_id: int) -> BlogPost:
        post = await self.session.get(BlogPost, post_id)
        if post is None or post.author_id != author.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
        return post

    async def update_post(self, author: User, post_id: int, payload: BlogPostUpdate) -> BlogPost:
        post = await self.get_post(author, post_id)
        changes = payload.model_dump(exclude_unset=True)
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
            changes["title"] = title
        if "excerpt" in changes:
            changes["excerpt"] = (changes["excerpt"] or "").strip()
        if "tags" in changes:
            changes["tags"] = list(changes["tags"] or [])
        if "status" in changes and changes["status"] is None:
            changes["status"] = POST_DRAFT
        for field in ("content", "cover_image_url", "category"):
            if field in changes and changes[field] is None:
                changes[field] = ""

        for field, value in changes.items():
            setattr(post, field, value)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def delete_post(self, author: User, post_id: int) -> None:
        post = await self.get_post(author, post_id)
        await self.session.delete(post)
        await self.session.commit()
        logger.info("User id=%s deleted post id=%s", author.id, post_id)

    async def list_comments(self, author: User, post_id: int) -> Sequence[Comment]:
        await self.get_post(author, post_id)
        result = await self.session.scalars(
            select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return result.all()

    async def add_comment(self, post_id: int, payload: CommentCreate) -> Comment:
        """Public entry point for readers; comments start out pending moderation."""
        post = await self.session.get(BlogPost, post_id)
        if post is None or post.status != POST_PUBLISHED:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

        comment = Comment(
            post_id=post.id,
            author_name=payload.author_name.strip(),
            author_email=str(payload.author_email) if payload.author_email else None,
            content=payload.content.strip(),
            status=COMMENT_PENDING,
        )
        self.session.add(comment)
        await self.session.commit()
        await self.session.refresh(comment)
        return comment

    async def _owned_comment(self, author: User, comment_id: int) -> Comment:
        comment = await self.session.scalar(
            select(Comment)
            .join(BlogPost, Comment.post_id == BlogPost.id)
            .where(Comment.id == comment_id, BlogPost.author_id == author.id)
        )
        if comment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
        return comment

    async def set_comment_status(self, author: User, comment_id: int, new_status: str) -> Comment:
        if new_status not in COMMENT_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown comment status")
        comment = await self._owned_comment(author, comment_id)
        comment.status = new_status
        await self.session.commit()
        await self.session.refresh(comment)
        return comment

    async def delete_comment(self, author: User, comment_id: int) -> None:
        comment = await self._owned_comment(author, comment_id)
        await self.session.delete(comment)
        await self.session.commit()
