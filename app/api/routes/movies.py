"""
Movie search, details and comment endpoints.
"""

from fastapi import APIRouter, Form, Query, Request, status
from fastapi.responses import RedirectResponse

from app.api.deps import CommentsDep, CurrentUserDep, ListsDep, MoviesDep
from app.api.views import render
from app.core.permissions import can_edit_items

router = APIRouter()


@router.get("/search")
async def search(
    request: Request,
    movies: MoviesDep,
    current_user: CurrentUserDep,
    q: str = Query("", max_length=200),
    page: int = Query(1, ge=1),
):
    """Searches the catalog. An empty query shows the empty search page."""
    results = None
    if q.strip():
        results = await movies.search_movies(q.strip(), page)
    return render(request, "search.html", {
        "user": current_user,
        "query": q,
        "results": results,
    })


@router.get("/{movie_id}")
async def movie_details(
    request: Request,
    movie_id: str,
    movies: MoviesDep,
    lists: ListsDep,
    comments: CommentsDep,
    current_user: CurrentUserDep,
):
    """
    Movie page.

    Shows the movie, its comments and the lists the viewer may add it to.
    """
    movie = await movies.get_movie(movie_id)
    user_lists = await lists.get_many_by_ids(current_user.lists)
    return render(request, "movie.html", {
        "user": current_user,
        "movie": movie,
        "comments": await comments.get_by_movie(movie_id),
        "lists": [ul for ul in user_lists if can_edit_items(ul, current_user.username)],
    })


@router.post("/{movie_id}/comments")
async def add_comment(
    movie_id: str,
    comments: CommentsDep,
    current_user: CurrentUserDep,
    text: str = Form(...),
):
    await comments.create(movie_id, text, current_user)
    return RedirectResponse(f"/movies/{movie_id}", status_code=status.HTTP_303_SEE_OTHER)
