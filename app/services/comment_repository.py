"""
Repository for movie comments.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.config import settings
from app.core.exceptions import InvalidInputError
from app.db.couch import CouchClient
from app.db.mapper import comment_to_doc, map_to_comment
from app.models.schemas import Comment, User
from app.services.user_repository import UserRepository

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000


class CommentRepository:
    """Comments live in their own collection; authors keep their ids in ``commentedOn``."""

    def __init__(
        self,
        store: CouchClient,
        users: UserRepository,
        db_name: Optional[str] = None,
    ):
        self.collection = store.collection(db_name or settings.comments_db, label="Comment")
        self.users = users

    async def create(self, movie_id: str, text: str, author: User) -> Comment:
        """Write a comment, then append its id to the author's ``commentedOn``."""
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Comment text is required")
        if len(text) > MAX_COMMENT_LENGTH:
            raise InvalidInputError(
                f"Comment is {len(text)} characters long",
                f"Comments are limited to {MAX_COMMENT_LENGTH} characters",
            )
        comment = Comment(
            movieId=str(movie_id),
            author=author.username,
            text=text,
            createdAt=datetime.now(timezone.utc),
        )
        result = await self.collection.post(comment_to_doc(comment))
        comment.id = result["id"]
        comment.rev = result["rev"]
        logger.info(f"User {author.username} commented on movie {movie_id}")

        author.commentedOn.append(comment.id)
        await self.users.update(author)
        return comment

    async def get_by_user(self, user: User) -> List[Comment]:
        """Comments written by ``user``, oldest first."""
        if not user.commentedOn:
            return []
        docs = await self.collection.get_many(user.commentedOn)
        return [map_to_comment(doc) for doc in docs if doc.get("author") == user.username]

    async def get_by_movie(self, movie_id: str) -> List[Comment]:
        docs = await self.collection.find({"movieId": str(movie_id)})
        comments = [map_to_comment(doc) for doc in docs]
        comments.sort(key=lambda c: c.createdAt)
        return comments
