from fastapi import APIRouter, Query, Depends, HTTPException
from pydantic import BaseModel
from minirel.errors import NotFoundError, ConstraintViolationError
from minirel.session import Session
from library_api.models import Author
from library_api.deps import get_session

router = APIRouter()


class AuthorCreate(BaseModel):
    name: str


class AuthorUpdate(BaseModel):
    name: str | None = None


def author_out(a):
    return {"author_id": a.id, "name": a.name}


def book_out(b):
    return {"book_id": b.id, "title": b.title, "year": b.year, "author_id": b.author_id}


def _find_author(session, author_id):
    try:
        return session.find(Author, author_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Author not found")


@router.post("/api/authors")
def add_author(author: AuthorCreate, session: Session = Depends(get_session)):
    new_author = session.create(Author, name=author.name)
    return {**author_out(new_author), "message": "Author added successfully"}


@router.get("/api/authors")
def get_authors(
    session: Session = Depends(get_session),
    name: str = Query(None),
    order_by: str = Query(None),
    order_dir: str = Query("ASC"),
):
    q = session.query(Author)
    if order_by in ("author_id", "name"):
        q = q.order_by("id" if order_by == "author_id" else order_by, order_dir or "ASC")
    authors = q.all()
    if name:
        authors = [a for a in authors if a.name and name.lower() in a.name.lower()]
    return [author_out(a) for a in authors]


@router.get("/api/authors/{author_id}")
def get_author(author_id: int, session: Session = Depends(get_session)):
    return author_out(_find_author(session, author_id))


@router.get("/api/authors/{author_id}/books")
def get_author_books(author_id: int, session: Session = Depends(get_session)):
    author = _find_author(session, author_id)
    return [book_out(b) for b in author.books]


@router.put("/api/authors/{author_id}")
def update_author(author_id: int, author: AuthorUpdate, session: Session = Depends(get_session)):
    existing = _find_author(session, author_id)
    if author.name is not None:
        existing.name = author.name
    session.save(existing)
    return {**author_out(existing), "message": "Author updated"}


@router.delete("/api/authors/{author_id}")
def delete_author(author_id: int, session: Session = Depends(get_session)):
    existing = _find_author(session, author_id)
    try:
        session.delete(existing)
    except ConstraintViolationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"message": "Author deleted"}
