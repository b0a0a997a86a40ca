"""
API route dependencies.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from app.config import settings
from app.core.auth import decode_session_token, is_token_expired
from app.core.exceptions import LoginRequiredError
from app.core.tmdb import TMDBClient
from app.db.couch import CouchClient
from app.models.schemas import User
from app.services.comment_repository import CommentRepository
from app.services.list_repository import ListRepository
from app.services.user_repository import UserRepository


def get_store(request: Request) -> CouchClient:
    """Document store client opened by the application lifespan."""
    return request.app.state.store


def get_movie_client(request: Request) -> TMDBClient:
    return request.app.state.tmdb


def get_user_repository(store: CouchClient = Depends(get_store)) -> UserRepository:
    return UserRepository(store)


def get_list_repository(
    store: CouchClient = Depends(get_store),
    users: UserRepository = Depends(get_user_repository),
    movies: TMDBClient = Depends(get_movie_client),
) -> ListRepository:
    return ListRepository(store, users, movies)


def get_comment_repository(
    store: CouchClient = Depends(get_store),
    users: UserRepository = Depends(get_user_repository),
) -> CommentRepository:
    return CommentRepository(store, users)


async def get_current_user(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Dependency to get the logged in user.

    Requires a valid session cookie; otherwise the request is answered
    with a redirect to the login page.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise LoginRequiredError()

    token_data = decode_session_token(token)
    if not token_data or is_token_expired(token_data):
        raise LoginRequiredError("Invalid or expired session")

    user = await users.find_by_id(token_data.username)
    if not user:
        raise LoginRequiredError("User not found")
    return user


async def get_optional_user(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """Returns the logged in user, or None."""
    try:
        return await get_current_user(request, users)
    except LoginRequiredError:
        return None


# Dependency annotations
StoreDep = Annotated[CouchClient, Depends(get_store)]
MoviesDep = Annotated[TMDBClient, Depends(get_movie_client)]
UsersDep = Annotated[UserRepository, Depends(get_user_repository)]
ListsDep = Annotated[ListRepository, Depends(get_list_repository)]
CommentsDep = Annotated[CommentRepository, Depends(get_comment_repository)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[Optional[User], Depends(get_optional_user)]
