"""
Conversion between raw store documents and domain objects.

Documents keep the store's ``_id``/``_rev`` keys; domain objects expose
them as ``id``/``rev`` (users are keyed by ``username``).
"""

from app.models.schemas import Comment, User, UserList


def map_to_user(doc: dict) -> User:
    return User(
        username=doc.get("username") or doc["_id"],
        password=doc.get("password", ""),
        fullName=doc.get("fullName", ""),
        email=doc.get("email", ""),
        lists=list(doc.get("lists") or []),
        commentedOn=list(doc.get("commentedOn") or []),
        rev=doc.get("_rev"),
    )


def user_to_doc(user: User) -> dict:
    doc = user.model_dump(exclude={"rev"})
    doc["_id"] = user.username
    if user.rev:
        doc["_rev"] = user.rev
    return doc


def map_to_user_list(doc: dict) -> UserList:
    return UserList(
        id=doc.get("_id"),
        rev=doc.get("_rev"),
        listName=doc.get("listName", ""),
        listDesc=doc.get("listDesc") or "",
        listProtection=doc.get("listProtection", "private"),
        owner=doc["owner"],
        items=doc.get("items") or [],
        guests=doc.get("guests") or [],
    )


def user_list_to_doc(user_list: UserList) -> dict:
    """Serialize a list. New lists (no id yet) produce a document without ``_id``."""
    doc = user_list.model_dump(exclude={"id", "rev"})
    if user_list.id:
        doc["_id"] = user_list.id
    if user_list.rev:
        doc["_rev"] = user_list.rev
    return doc


def map_to_comment(doc: dict) -> Comment:
    return Comment(
        id=doc.get("_id"),
        rev=doc.get("_rev"),
        movieId=str(doc["movieId"]),
        author=doc["author"],
        text=doc["text"],
        createdAt=doc["createdAt"],
    )


def comment_to_doc(comment: Comment) -> dict:
    doc = comment.model_dump(mode="json", exclude={"id", "rev"})
    if comment.id:
        doc["_id"] = comment.id
    if comment.rev:
        doc["_rev"] = comment.rev
    return doc
