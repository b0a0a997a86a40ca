"""
Repository for user documents.
"""

import logging
from typing import Iterable, List, Optional

from app.config import settings
from app.core.auth import hash_password, verify_password
from app.core.exceptions import (
    BulkUpdateError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from app.db.couch import BulkResult, CouchClient
from app.db.mapper import map_to_user, user_to_doc
from app.models.schemas import User

logger = logging.getLogger(__name__)


class UserRepository:
    """CRUD and batch operations over the ``users`` collection.

    Writes update ``rev`` on the passed objects so a caller can keep
    writing the same user within one request.
    """

    def __init__(self, store: CouchClient, db_name: Optional[str] = None):
        self.collection = store.collection(db_name or settings.users_db, label="User")

    async def get_by_credentials(self, username: str, password: str) -> User:
        """
        Load a user for login.

        Raises:
            NotFoundError: No such user
            InvalidCredentialsError: Password does not match
        """
        logger.debug(f"Fetching user with id = {username}")
        user = await self.find_by_id(username)
        if user is None:
            raise NotFoundError(f"User {username} not found", "User not Found!")
        if not verify_password(password, user.password):
            raise InvalidCredentialsError()
        return user

    async def get_many(self, usernames: Iterable[str]) -> List[User]:
        """Batch fetch users. Order follows the store's rows; unknown names are skipped."""
        keys = list(usernames)
        if not keys:
            return []
        docs = await self.collection.get_many(keys)
        return [map_to_user(doc) for doc in docs]

    async def create(
        self,
        username: str,
        password: str,
        full_name: str,
        email: str,
    ) -> User:
        """
        Create a user keyed by username.

        Raises:
            ConflictError: Username already taken
        """
        logger.info(f"Creating user with username = {username}")
        user = User(
            username=username,
            password=hash_password(password),
            fullName=full_name,
            email=email,
        )
        try:
            result = await self.collection.put(user_to_doc(user))
        except ConflictError as e:
            raise ConflictError(
                str(e), f'Username "{username}" was already taken!'
            ) from e
        user.rev = result["rev"]
        return user

    async def update(self, user: User) -> User:
        """Write the user back. A stale ``rev`` raises ConflictError."""
        result = await self.collection.put(user_to_doc(user))
        user.rev = result["rev"]
        return user

    async def update_many(self, users: List[User]) -> List[BulkResult]:
        """
        Bulk write users.

        Raises:
            BulkUpdateError: One or more documents were rejected; the others
                were written and carry their new ``rev``.
        """
        if not users:
            return []
        results = await self.collection.bulk_docs([user_to_doc(u) for u in users])
        by_name = {u.username: u for u in users}
        failures = {}
        for result in results:
            if result.ok:
                if result.id in by_name:
                    by_name[result.id].rev = result.rev
            else:
                failures[result.id] = result.error
        if failures:
            logger.warning(f"Bulk user update rejected: {failures}")
            raise BulkUpdateError(failures)
        return results

    async def delete(self, user: User) -> None:
        logger.info(f"Deleting user with id = {user.username}")
        await self.collection.delete(user.username, user.rev)

    async def find_by_id(self, username: str) -> Optional[User]:
        """Get a user, or None when the username is unknown."""
        try:
            doc = await self.collection.get(username)
        except NotFoundError:
            return None
        return map_to_user(doc)
