from fastapi import APIRouter, Query, Depends, HTTPException
from pydantic import BaseModel
from minirel.errors import NotFoundError, ConstraintViolationError
from minirel.session import Session
from library_api.models import Author, Book
from library_api.deps import get_session
from library_api.endpoints.authors_endpoints import author_out, book_out

router = APIRouter()


class BookCreate(BaseModel):
    title: str
    year: int | None = None
    author_id: int


def _find_book(session, book_id):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.post("/api/books")
def add_book(book: BookCreate, session: Session = Depends(get_session)):
    try:
        author = session.find(Author, book.author_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Author not found")
    new_book = session.create(Book, title=book.title, year=book.year, author=author)
    return {**book_out(new_book), "message": "Book added successfully"}


@router.get("/api/books")
def get_books(
    session: Session = Depends(get_session),
    title: str = Query(None),
    author_id: int = Query(None),
    order_by: str = Query(None),
    order_dir: str = Query("ASC"),
):
    q = session.query(Book)
    if author_id is not None:
        q = q.filter(author_id=author_id)
    if order_by in ("book_id", "title", "year"):
        q = q.order_by("id" if order_by == "book_id" else order_by, order_dir or "ASC")
    books = q.all()
    if title:
        books = [b for b in books if b.title and title.lower() in b.title.lower()]
    return [book_out(b) for b in books]


@router.get("/api/books/{book_id}")
def get_book(book_id: int, session: Session = Depends(get_session)):
    return book_out(_find_book(session, book_id))


@router.get("/api/books/{book_id}/author")
def get_book_author(book_id: int, session: Session = Depends(get_session)):
    book = _find_book(session, book_id)
    if book.author is None:
        raise HTTPException(status_code=404, detail="Author not found")
    return author_out(book.author)


@router.put("/api/books/{book_id}/author/{author_id}")
def move_book(book_id: int, author_id: int, session: Session = Depends(get_session)):
    book = _find_book(session, book_id)
    book.author_id = author_id
    try:
        session.save(book)
    except ConstraintViolationError:
        raise HTTPException(status_code=409, detail=f"Author {author_id} does not exist")
    return {**book_out(book), "message": "Book moved"}


@router.delete("/api/books/{book_id}")
def delete_book(book_id: int, session: Session = Depends(get_session)):
    session.delete(_find_book(session, book_id))
    return {"message": "Book deleted"}
