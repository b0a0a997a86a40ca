"""
Access rules for lists.

- view: public lists, the owner, or any guest
- edit items: the owner or a ``readwrite`` guest
- manage (rename, change protection, invite, delete): the owner only
"""

from app.core.exceptions import ForbiddenError
from app.models.schemas import UserList


def can_view(user_list: UserList, username: str) -> bool:
    if user_list.listProtection == "public" or user_list.owner == username:
        return True
    return user_list.find_guest(username) is not None


def can_edit_items(user_list: UserList, username: str) -> bool:
    if user_list.owner == username:
        return True
    guest = user_list.find_guest(username)
    return guest is not None and guest.permission == "readwrite"


def ensure_can_view(user_list: UserList, username: str) -> None:
    if not can_view(user_list, username):
        raise ForbiddenError(f"{username} may not view list {user_list.id}")


def ensure_can_edit_items(user_list: UserList, username: str) -> None:
    if not can_edit_items(user_list, username):
        raise ForbiddenError(f"{username} may not edit movies of list {user_list.id}")


def ensure_owner(user_list: UserList, username: str) -> None:
    if user_list.owner != username:
        raise ForbiddenError(f"{username} does not own list {user_list.id}")
