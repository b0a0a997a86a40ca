"""
Repository for movie lists.

Lists and users reference each other: every list id in ``User.lists``
points at a list the user owns or is a guest of, and every owner/guest of
a list has the list id in ``User.lists``. The store enforces none of this,
so every structural change goes through this repository and updates both
sides. Writes are sequential and not atomic: the list is written first,
then the owner, then the guests. The first failure is raised as is and the
remaining writes are skipped.
"""

import logging
from typing import Iterable, List, Optional, Protocol, get_args

from app.config import settings
from app.core.exceptions import InvalidInputError, NotFoundError
from app.core.pagination import build_range
from app.core.permissions import ensure_can_edit_items, ensure_owner
from app.db.couch import CouchClient
from app.db.mapper import map_to_user_list, user_list_to_doc
from app.models.schemas import (
    Guest,
    ListProtection,
    ListUpdate,
    MovieDetails,
    MovieItem,
    OwnerListsPage,
    Permission,
    PublicListsPage,
    User,
    UserList,
)
from app.services.user_repository import UserRepository

logger = logging.getLogger(__name__)

PROTECTIONS = get_args(ListProtection)
PERMISSIONS = get_args(Permission)


class MovieLookup(Protocol):
    async def get_movie(self, movie_id: str) -> MovieDetails: ...


class ListRepository:
    """CRUD, guest management and movie mutation over the ``lists`` collection."""

    def __init__(
        self,
        store: CouchClient,
        users: UserRepository,
        movies: MovieLookup,
        db_name: Optional[str] = None,
    ):
        self.collection = store.collection(db_name or settings.lists_db, label="List")
        self.users = users
        self.movies = movies

    # ============ Reads ============

    async def get_by_id(self, list_id: str) -> UserList:
        logger.debug(f"Fetching list with id = {list_id}")
        return map_to_user_list(await self.collection.get(list_id))

    async def get_public(self, page: int) -> PublicListsPage:
        """
        Page through public lists.

        Scans the whole collection, keeps ``public`` lists only, then
        slices. ``totalCount`` is the number of public lists.
        """
        logger.debug("Fetching public lists")
        page_range = build_range(page)
        public = [
            map_to_user_list(doc)
            for doc in await self.collection.all_docs()
            if doc.get("listProtection") == "public"
        ]
        window = public[page_range.offset:page_range.offset + page_range.limit]
        return PublicListsPage(lists=window, totalCount=len(public))

    async def get_many_by_ids(self, list_ids: Iterable[str]) -> List[UserList]:
        keys = list(list_ids)
        logger.debug(f"Fetching lists with these ids = {keys}")
        if not keys:
            return []
        return [map_to_user_list(doc) for doc in await self.collection.get_many(keys)]

    async def get_by_owner_paginated(self, username: str, page: int) -> OwnerListsPage:
        """One page of the lists referenced by the user; limit/skip run in the store."""
        logger.debug(f"Fetching lists of = {username}")
        user = await self.users.find_by_id(username)
        if user is None:
            raise NotFoundError(f"User {username} not found", "User not Found!")
        page_range = build_range(page)
        if not user.lists:
            return OwnerListsPage(lists=[], rowCount=0)
        docs = await self.collection.get_many(
            user.lists, limit=page_range.limit, skip=page_range.offset
        )
        return OwnerListsPage(lists=[map_to_user_list(d) for d in docs], rowCount=len(docs))

    # ============ Structural changes ============

    async def create(
        self,
        name: str,
        protection: str,
        description: str,
        owner: User,
    ) -> UserList:
        """
        Create an empty list and register it on the owner.

        Two writes: the list, then the owner. If the owner write fails the
        list exists without being referenced by its owner.
        """
        if not name or not name.strip():
            raise InvalidInputError("List name is required")
        if protection not in PROTECTIONS:
            raise InvalidInputError(f"Invalid list protection: {protection}")
        logger.info(f"Creating new list for user {owner.username} with name {name}")

        user_list = UserList(
            listName=name.strip(),
            listDesc=description or "",
            listProtection=protection,
            owner=owner.username,
        )
        result = await self.collection.post(user_list_to_doc(user_list))
        user_list.id = result["id"]
        user_list.rev = result["rev"]

        if user_list.id not in owner.lists:
            owner.lists.append(user_list.id)
        await self.users.update(owner)
        return user_list

    async def delete(self, list_id: str, owner: User) -> None:
        """
        Delete a list and drop its id from the owner and every guest.

        Raises:
            ForbiddenError: ``owner`` does not own the list
        """
        logger.info(f'Deleting list with id = "{list_id}" of user = {owner.username}')
        user_list = await self.get_by_id(list_id)
        ensure_owner(user_list, owner.username)

        await self.collection.delete(list_id, user_list.rev)

        owner.lists = [i for i in owner.lists if i != list_id]
        await self.users.update(owner)

        if user_list.guests:
            guests = await self.users.get_many(g.username for g in user_list.guests)
            _remove_list_from(guests, list_id)
            await self.users.update_many(guests)

    async def update(self, options: ListUpdate) -> UserList:
        """
        Patch name, description and protection.

        Empty or missing values leave a field unchanged. Switching to
        ``public`` clears the guests and removes the list from each former
        guest. The list is written first, then the former guests.

        Raises:
            ForbiddenError: ``options.username`` is set and is not the owner
        """
        logger.info(f'Updating list with id = "{options.listId}" of user = {options.username}')
        user_list = await self.get_by_id(options.listId)
        if options.username is not None:
            ensure_owner(user_list, options.username)

        if options.name:
            user_list.listName = options.name
        if options.description:
            user_list.listDesc = options.description

        former_guests: List[User] = []
        if options.protection:
            if options.protection == "public" and user_list.guests:
                former_guests = await self.users.get_many(g.username for g in user_list.guests)
                _remove_list_from(former_guests, user_list.id)
                user_list.guests = []
            user_list.listProtection = options.protection

        await self._save(user_list)
        if former_guests:
            await self.users.update_many(former_guests)
        return user_list

    async def invite_guest(
        self,
        username: str,
        permission: str,
        list_id: str,
        owner: Optional[str] = None,
    ) -> UserList:
        """
        Grant ``username`` access to a private list.

        Re-inviting with the same permission changes nothing; a different
        permission updates the existing guest entry. The list is written
        before the invitee.

        Raises:
            NotFoundError: Unknown invitee ("User not Found!") or list
            ForbiddenError: ``owner`` is set and does not own the list
            InvalidInputError: Bad permission, invitee is the owner, or the
                list is public
        """
        if permission not in PERMISSIONS:
            raise InvalidInputError(f"Invalid permission: {permission}")
        invitee = await self.users.find_by_id(username)
        if invitee is None:
            raise NotFoundError(f"Invitee {username} not found", "User not Found!")

        user_list = await self.get_by_id(list_id)
        if owner is not None:
            ensure_owner(user_list, owner)
        if username == user_list.owner:
            raise InvalidInputError("The owner cannot be invited to their own list")
        if user_list.listProtection == "public":
            raise InvalidInputError("Public lists cannot have guests")

        logger.info(f"Inviting {username} ({permission}) to list {list_id}")
        guest = user_list.find_guest(username)
        if guest is None:
            user_list.guests.append(Guest(username=username, permission=permission))
            await self._save(user_list)
        elif guest.permission != permission:
            guest.permission = permission
            await self._save(user_list)

        if list_id not in invitee.lists:
            invitee.lists.append(list_id)
            await self.users.update(invitee)
        return user_list

    # ============ Movies ============

    async def add_movie(
        self,
        list_id: str,
        movie_id: str,
        editor: Optional[str] = None,
    ) -> UserList:
        """Append a movie with its poster and rating. Duplicates are allowed."""
        logger.debug(f"Adding movie with id = {movie_id} to list with id = {list_id}")
        user_list = await self.get_by_id(list_id)
        if editor is not None:
            ensure_can_edit_items(user_list, editor)
        movie = await self.movies.get_movie(str(movie_id))
        user_list.items.append(
            MovieItem(
                movieId=str(movie_id),
                moviePoster=movie.poster,
                movieRating=movie.voteAverage,
            )
        )
        await self._save(user_list)
        return user_list

    async def remove_movie(
        self,
        list_id: str,
        movie_id: str,
        editor: Optional[str] = None,
    ) -> UserList:
        """
        Remove the first item with ``movie_id``.

        A movie that is not in the list is a no-op and the list is not
        rewritten.
        """
        logger.debug(f"Removing movie with id = {movie_id} from list with id = {list_id}")
        user_list = await self.get_by_id(list_id)
        if editor is not None:
            ensure_can_edit_items(user_list, editor)
        movie_id = str(movie_id)
        for index, item in enumerate(user_list.items):
            if item.movieId == movie_id:
                del user_list.items[index]
                await self._save(user_list)
                break
        else:
            logger.debug(f"Movie {movie_id} not in list {list_id}, nothing to remove")
        return user_list

    async def _save(self, user_list: UserList) -> None:
        result = await self.collection.put(user_list_to_doc(user_list))
        user_list.rev = result["rev"]


def _remove_list_from(users: List[User], list_id: str) -> None:
    for user in users:
        user.lists = [i for i in user.lists if i != list_id]
