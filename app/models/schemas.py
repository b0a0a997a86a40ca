"""
Pydantic schemas for the domain objects handled by the repositories and views.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ListProtection = Literal["public", "private"]
Permission = Literal["readonly", "readwrite"]


# ============ User Schemas ============

class User(BaseModel):
    """Registered user. The username is the document id."""

    username: str = Field(..., description="Unique username, also the store key")
    password: str = Field(..., description="bcrypt hash of the password")
    fullName: str = Field("", description="Display name")
    email: str = Field("", description="Contact email")
    lists: List[str] = Field(
        default_factory=list, description="Ids of lists owned or shared with the user"
    )
    commentedOn: List[str] = Field(
        default_factory=list, description="Ids of comments written by the user"
    )
    rev: Optional[str] = Field(None, description="Store revision token")


# ============ List Schemas ============

class MovieItem(BaseModel):
    """A movie entry inside a list."""

    movieId: str
    moviePoster: Optional[str] = None
    movieRating: Optional[float] = None


class Guest(BaseModel):
    """A non-owner user with access to a private list."""

    username: str
    permission: Permission


class UserList(BaseModel):
    """User curated movie list."""

    id: Optional[str] = Field(None, description="Store assigned id")
    listName: str
    listDesc: str = ""
    listProtection: ListProtection = "private"
    owner: str = Field(..., description="Username of the owner")
    items: List[MovieItem] = Field(default_factory=list, description="Movies in insertion order")
    guests: List[Guest] = Field(default_factory=list)
    rev: Optional[str] = None

    def find_guest(self, username: str) -> Optional[Guest]:
        """Return the guest entry for ``username`` if any."""
        for guest in self.guests:
            if guest.username == username:
                return guest
        return None


class ListUpdate(BaseModel):
    """Partial update of list fields. Empty values leave the field unchanged."""

    listId: str
    username: Optional[str] = Field(None, description="Acting user; must own the list when set")
    name: Optional[str] = None
    description: Optional[str] = None
    protection: Optional[ListProtection] = None


class PublicListsPage(BaseModel):
    """One page of public lists."""

    lists: List[UserList]
    totalCount: int = Field(..., ge=0, description="Public lists before slicing")


class OwnerListsPage(BaseModel):
    """One page of a user's lists."""

    lists: List[UserList]
    rowCount: int = Field(..., ge=0, description="Rows returned for this page")


# ============ Movie Schemas ============

class MovieDetails(BaseModel):
    """Movie metadata resolved from the catalog."""

    id: str
    title: str = ""
    overview: str = ""
    releaseDate: Optional[str] = None
    poster: Optional[str] = None
    voteAverage: Optional[float] = None


class MovieSearchPage(BaseModel):
    """Catalog search results."""

    results: List[MovieDetails]
    page: int
    totalPages: int


# ============ Comment Schemas ============

class Comment(BaseModel):
    """Comment written by a user about a movie."""

    id: Optional[str] = None
    movieId: str
    author: str
    text: str = Field(..., min_length=1, max_length=2000)
    createdAt: datetime
    rev: Optional[str] = None
