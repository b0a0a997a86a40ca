"""
User profile and movie list endpoints.

Every route needs a session. Identity checks compare the session's
username with the ``{username}`` path parameter.
"""

from typing import Optional

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from app.api.deps import CommentsDep, CurrentUserDep, ListsDep
from app.api.views import render
from app.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from app.core.pagination import total_pages
from app.core.permissions import can_edit_items, ensure_can_view
from app.models.schemas import ListUpdate, User
from app.services.list_repository import PROTECTIONS

router = APIRouter()


def ensure_same_user(username: str, current_user: User) -> None:
    """Profile pages of other users are reported as missing."""
    if current_user.username != username:
        raise NotFoundError(f"{current_user.username} asked for {username}", "User Not Found")


def ensure_own_lists(username: str, current_user: User) -> None:
    if current_user.username != username:
        raise ForbiddenError(
            f"{current_user.username} asked for lists of {username}",
            "Forbidden - You do not have permission to access this lists",
        )


def ok() -> PlainTextResponse:
    return PlainTextResponse("OK", status_code=status.HTTP_200_OK)


# Declared before "/{username}/..." so "public" is never read as a username.
@router.get("/public/lists")
async def public_lists(
    request: Request,
    lists: ListsDep,
    current_user: CurrentUserDep,
    page: int = 1,
):
    """Shows all public lists."""
    data = await lists.get_public(page)
    return render(request, "user_lists.html", {
        "user": current_user,
        "public": True,
        "lists": data.lists,
        "currentPage": page,
        "totalPages": total_pages(data.totalCount),
    })


@router.get("/{username}")
async def profile(request: Request, username: str, current_user: CurrentUserDep):
    """Shows the user profile page."""
    ensure_same_user(username, current_user)
    return render(request, "user_info.html", {"user": current_user})


@router.get("/{username}/lists")
async def user_lists(
    request: Request,
    username: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    page: int = 1,
):
    """Shows the lists owned by or shared with the user."""
    ensure_own_lists(username, current_user)
    data = await lists.get_by_owner_paginated(username, page)
    return render(request, "user_lists.html", {
        "user": current_user,
        "public": False,
        "lists": data.lists,
        "currentPage": page,
        "totalPages": total_pages(len(current_user.lists)),
    })


@router.get("/{username}/lists/new")
async def new_list_form(request: Request, username: str, current_user: CurrentUserDep):
    ensure_own_lists(username, current_user)
    return render(request, "create_list.html", {"user": current_user})


@router.post("/{username}/lists/new")
async def create_list(
    username: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    name: str = Form(...),
    protection: str = Form("private", alias="option"),
    description: str = Form(""),
):
    """Creates a list for the session user and redirects to their lists."""
    ensure_own_lists(username, current_user)
    await lists.create(name, protection, description, current_user)
    return RedirectResponse(f"/users/{username}/lists", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/{username}/lists/{list_id}")
async def view_list(
    request: Request,
    username: str,
    list_id: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
):
    """Shows one list. Private lists are visible to the owner and guests only."""
    user_list = await lists.get_by_id(list_id)
    ensure_can_view(user_list, current_user.username)
    return render(request, "list_detail.html", {
        "user": current_user,
        "list": user_list,
        "isOwner": user_list.owner == current_user.username,
        "canEdit": can_edit_items(user_list, current_user.username),
    })


@router.post("/{username}/lists/{list_id}")
async def add_movie(
    list_id: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    movie_id: str = Form(..., alias="movieID"),
):
    await lists.add_movie(list_id, movie_id, editor=current_user.username)
    return ok()


@router.delete("/{username}/lists/{list_id}")
async def remove_movie(
    list_id: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    movie_id: str = Form(..., alias="movieID"),
):
    await lists.remove_movie(list_id, movie_id, editor=current_user.username)
    return ok()


@router.delete("/{username}/lists")
async def delete_list(
    lists: ListsDep,
    current_user: CurrentUserDep,
    list_id: str = Form(..., alias="listID"),
):
    await lists.delete(list_id, current_user)
    return ok()


@router.put("/{username}/lists/{list_id}")
async def edit_list(
    list_id: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    protection: Optional[str] = Form(None, alias="listProtection"),
):
    """Updates name, description or protection of a list the session user owns."""
    if protection and protection not in PROTECTIONS:
        raise InvalidInputError(f"Invalid list protection: {protection}")
    await lists.update(ListUpdate(
        listId=list_id,
        username=current_user.username,
        name=name,
        description=description,
        protection=protection or None,
    ))
    return ok()


@router.put("/{username}/lists/{list_id}/invite")
async def invite_guest(
    list_id: str,
    lists: ListsDep,
    current_user: CurrentUserDep,
    guest_username: str = Form(..., alias="guestUsername"),
    permission: str = Form("readonly"),
):
    """Invites a user. Unknown users and rejected invites answer with status and message."""
    try:
        await lists.invite_guest(guest_username, permission, list_id, owner=current_user.username)
    except (NotFoundError, InvalidInputError) as e:
        return PlainTextResponse(e.user_message, status_code=e.status_code)
    return ok()


@router.get("/{username}/comments")
async def user_comments(
    request: Request,
    username: str,
    comments: CommentsDep,
    current_user: CurrentUserDep,
):
    """Shows the comments written by the user."""
    ensure_same_user(username, current_user)
    return render(request, "comments.html", {
        "user": current_user,
        "comments": await comments.get_by_user(current_user),
    })
