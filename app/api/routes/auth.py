"""
Sign up, login and logout endpoints.
"""

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field, ValidationError

from app.api.deps import OptionalUserDep, UsersDep
from app.api.views import render
from app.config import settings
from app.core.auth import create_session_token
from app.core.exceptions import ConflictError, InvalidCredentialsError, NotFoundError


router = APIRouter()

RESERVED_USERNAMES = {"public"}


class SignupForm(BaseModel):
    """Sign up form."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$",
    )
    password: str = Field(..., min_length=8, description="Minimum 8 characters")
    fullName: str = ""
    email: EmailStr


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _field_errors(error: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors()]


@router.get("/")
async def index(current_user: OptionalUserDep):
    if current_user:
        return _redirect(f"/users/{current_user.username}")
    return _redirect("/login")


@router.get("/signup")
async def signup_form(request: Request):
    return render(request, "signup.html", {"errors": []})


@router.post("/signup")
async def signup(
    request: Request,
    users: UsersDep,
    username: str = Form(...),
    password: str = Form(...),
    full_name: str = Form("", alias="fullName"),
    email: str = Form(...),
):
    """
    Register a new account.

    Invalid input and taken usernames re-render the form.
    """
    try:
        form = SignupForm(username=username, password=password, fullName=full_name, email=email)
    except ValidationError as e:
        return render(
            request, "signup.html", {"errors": _field_errors(e)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    if form.username.lower() in RESERVED_USERNAMES:
        return render(
            request, "signup.html", {"errors": [f'Username "{form.username}" is reserved']},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        await users.create(form.username, form.password, form.fullName, form.email)
    except ConflictError as e:
        return render(
            request, "signup.html", {"errors": [e.user_message]},
            status_code=status.HTTP_409_CONFLICT,
        )
    return _redirect("/login")


@router.get("/login")
async def login_form(request: Request):
    return render(request, "login.html", {"error": None})


@router.post("/login")
async def login(
    request: Request,
    users: UsersDep,
    username: str = Form(...),
    password: str = Form(...),
):
    """Checks credentials, sets the session cookie and redirects to the profile."""
    try:
        user = await users.get_by_credentials(username, password)
    except (NotFoundError, InvalidCredentialsError):
        return render(
            request, "login.html", {"error": "Invalid username or password"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = _redirect(f"/users/{user.username}")
    response.set_cookie(
        settings.session_cookie_name,
        create_session_token(user.username),
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout")
async def logout():
    response = _redirect("/login")
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response
