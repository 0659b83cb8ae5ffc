"""
Catalog views: list, detail, create, update and delete for authors,
genres, books and book copies.

Independent reads inside one request (a record and its dependents, or the
candidate lists of a form) are fetched concurrently through
``fanout.gather``.

Delete is guarded: while dependents still reference a record, submitting
the delete form re-renders the confirmation page instead of deleting.
Dependents are always re-queried at submit time. The check and the delete
are separate statements, so a dependent inserted in between is not seen.
"""

from flask import Blueprint, request, render_template, redirect, url_for

import store
from data_models import CATALOG_PREFIX, Author, Book, BookInstance, Genre
from errors import EntityNotFound
from fanout import gather
from forms import AuthorForm, BookForm, BookInstanceForm, GenreForm
from logging_setup import get_logger

LOG = get_logger(__name__)

bp = Blueprint("catalog", __name__, url_prefix=CATALOG_PREFIX)


@bp.route("/")
def index():
    """
    Site home: record counts for every collection.
    """
    (
        book_count,
        book_instance_count,
        book_instance_available_count,
        author_count,
        genre_count,
    ) = gather(
        store.books.count,
        store.book_instances.count,
        lambda: store.book_instances.count(BookInstance.status == "Available"),
        store.authors.count,
        store.genres.count,
    )

    return render_template(
        "index.html",
        title="Local Library Home",
        book_count=book_count,
        book_instance_count=book_instance_count,
        book_instance_available_count=book_instance_available_count,
        author_count=author_count,
        genre_count=genre_count,
    )


# --- Genres ---

@bp.route("/genres")
def genre_list():
    genres = store.genres.find_all()
    return render_template("genre_list.html", title="Genre List", genre_list=genres)


@bp.route("/genre/<genre_id>")
def genre_detail(genre_id):
    """
    A genre and every book filed under it.
    """
    genre, genre_books = gather(
        lambda: store.genres.find_by_id(genre_id),
        lambda: store.books_in_genre(genre_id),
    )
    if genre is None:
        raise EntityNotFound("Genre", genre_id)

    return render_template(
        "genre_detail.html",
        title=f"Genre: {genre.name}",
        genre=genre,
        genre_books=genre_books,
    )


@bp.route("/genre/create", methods=["GET", "POST"])
def genre_create():
    """
    Create a genre. Names are unique ignoring case: submitting an existing
    name redirects to that genre instead of adding a second one.
    """
    if request.method == "GET":
        return render_template("genre_form.html", title="Create Genre", genre=None, errors=None)

    form = GenreForm()
    values = form.cleaned()
    genre = Genre(**values)

    if not form.validate():
        return render_template("genre_form.html", title="Create Genre", genre=genre, errors=form.error_list())

    existing = store.genre_by_name(values["name"])
    if existing is not None:
        LOG.info("Genre '%s' already exists as %s", values["name"], existing.id)
        return redirect(existing.detail_url)

    store.genres.insert(genre)
    LOG.info("Created genre %s", genre.id)
    return redirect(genre.detail_url)


@bp.route("/genre/<genre_id>/update", methods=["GET", "POST"])
def genre_update(genre_id):
    if request.method == "GET":
        genre = store.genres.find_by_id(genre_id)
        if genre is None:
            raise EntityNotFound("Genre", genre_id)
        return render_template("genre_form.html", title="Update Genre", genre=genre, errors=None)

    form = GenreForm()
    values = form.cleaned()

    if not form.validate():
        genre = Genre(id=genre_id, **values)
        return render_template("genre_form.html", title="Update Genre", genre=genre, errors=form.error_list())

    genre = store.genres.replace(genre_id, values)
    if genre is None:
        raise EntityNotFound("Genre", genre_id)
    LOG.info("Updated genre %s", genre_id)
    return redirect(genre.detail_url)


@bp.route("/genre/<genre_id>/delete", methods=["GET", "POST"])
def genre_delete(genre_id):
    """
    Confirm and delete a genre. Refused while any book is filed under it.
    """
    genre, genre_books = gather(
        lambda: store.genres.find_by_id(genre_id),
        lambda: store.books_in_genre(genre_id),
    )

    if request.method == "GET" and genre is None:
        return redirect(url_for(".genre_list"))

    if request.method == "POST":
        if not genre_books:
            store.genres.delete_by_id(request.form.get("genreid"))
            LOG.info("Deleted genre %s", request.form.get("genreid"))
            return redirect(url_for(".genre_list"))
        LOG.info("Refused to delete genre %s: %d book(s) still filed under it", genre_id, len(genre_books))

    return render_template("genre_delete.html", title="Delete Genre", genre=genre, genre_books=genre_books)


# --- Authors ---

@bp.route("/authors")
def author_list():
    authors = store.authors.find_all()
    return render_template("author_list.html", title="Author List", author_list=authors)


@bp.route("/author/<author_id>")
def author_detail(author_id):
    """
    An author and the books they wrote.
    """
    author, author_books = gather(
        lambda: store.authors.find_by_id(author_id),
        lambda: store.books_by_author(author_id),
    )
    if author is None:
        raise EntityNotFound("Author", author_id)

    return render_template(
        "author_detail.html",
        title=f"Author: {author.display_name}",
        author=author,
        author_books=author_books,
    )


@bp.route("/author/create", methods=["GET", "POST"])
def author_create():
    if request.method == "GET":
        return render_template("author_form.html", title="Create Author", author=None, errors=None)

    form = AuthorForm()
    author = Author(**form.cleaned())

    if not form.validate():
        return render_template("author_form.html", title="Create Author", author=author, errors=form.error_list())

    store.authors.insert(author)
    LOG.info("Created author %s", author.id)
    return redirect(author.detail_url)


@bp.route("/author/<author_id>/update", methods=["GET", "POST"])
def author_update(author_id):
    if request.method == "GET":
        author = store.authors.find_by_id(author_id)
        if author is None:
            raise EntityNotFound("Author", author_id)
        return render_template("author_form.html", title="Update Author", author=author, errors=None)

    form = AuthorForm()
    values = form.cleaned()

    if not form.validate():
        author = Author(id=author_id, **values)
        return render_template("author_form.html", title="Update Author", author=author, errors=form.error_list())

    author = store.authors.replace(author_id, values)
    if author is None:
        raise EntityNotFound("Author", author_id)
    LOG.info("Updated author %s", author_id)
    return redirect(author.detail_url)


@bp.route("/author/<author_id>/delete", methods=["GET", "POST"])
def author_delete(author_id):
    """
    Confirm and delete an author. Refused while any book references them.
    """
    author, author_books = gather(
        lambda: store.authors.find_by_id(author_id),
        lambda: store.books_by_author(author_id),
    )

    if request.method == "GET" and author is None:
        return redirect(url_for(".author_list"))

    if request.method == "POST":
        if not author_books:
            store.authors.delete_by_id(request.form.get("authorid"))
            LOG.info("Deleted author %s", request.form.get("authorid"))
            return redirect(url_for(".author_list"))
        LOG.info("Refused to delete author %s: %d book(s) still reference them", author_id, len(author_books))

    return render_template("author_delete.html", title="Delete Author", author=author, author_books=author_books)


# --- Books ---

def _book_form(title, book, authors, genres, selected_author, selected_genres, errors=None):
    return render_template(
        "book_form.html",
        title=title,
        book=book,
        authors=authors,
        genres=genres,
        selected_author=selected_author,
        selected_genres=set(selected_genres or ()),
        errors=errors,
    )


def _book_choices():
    return gather(store.authors.find_all, store.genres.find_all)


@bp.route("/books")
def book_list():
    books = store.books.find_all()
    return render_template("book_list.html", title="Book List", book_list=books)


@bp.route("/book/<book_id>")
def book_detail(book_id):
    """
    A book with its author, genres and every copy held.
    """
    book, book_instances = gather(
        lambda: store.books.find_by_id(book_id),
        lambda: store.instances_of_book(book_id),
    )
    if book is None:
        raise EntityNotFound("Book", book_id)

    return render_template("book_detail.html", title=book.title, book=book, book_instances=book_instances)


@bp.route("/book/create", methods=["GET", "POST"])
def book_create():
    if request.method == "GET":
        authors, genres = _book_choices()
        return _book_form("Create Book", None, authors, genres, None, ())

    form = BookForm()
    values = form.cleaned()
    genre_ids = values.pop("genre_ids")

    if not form.validate():
        authors, genres = _book_choices()
        book = Book(**values)
        return _book_form(
            "Create Book", book, authors, genres, values["author_id"], genre_ids, form.error_list()
        )

    book = Book(genres=store.genres_by_ids(genre_ids), **values)
    store.books.insert(book)
    LOG.info("Created book %s", book.id)
    return redirect(book.detail_url)


@bp.route("/book/<book_id>/update", methods=["GET", "POST"])
def book_update(book_id):
    if request.method == "GET":
        book, authors, genres = gather(
            lambda: store.books.find_by_id(book_id),
            store.authors.find_all,
            store.genres.find_all,
        )
        if book is None:
            raise EntityNotFound("Book", book_id)
        return _book_form("Update Book", book, authors, genres, book.author_id, book.genre_ids)

    form = BookForm()
    values = form.cleaned()
    genre_ids = values.pop("genre_ids")

    if not form.validate():
        authors, genres = _book_choices()
        book = Book(id=book_id, **values)
        return _book_form(
            "Update Book", book, authors, genres, values["author_id"], genre_ids, form.error_list()
        )

    values["genres"] = store.genres_by_ids(genre_ids)
    book = store.books.replace(book_id, values)
    if book is None:
        raise EntityNotFound("Book", book_id)
    LOG.info("Updated book %s", book_id)
    return redirect(book.detail_url)


@bp.route("/book/<book_id>/delete", methods=["GET", "POST"])
def book_delete(book_id):
    """
    Confirm and delete a book. Refused while any copy of it exists.
    """
    book, book_instances = gather(
        lambda: store.books.find_by_id(book_id),
        lambda: store.instances_of_book(book_id),
    )

    if request.method == "GET" and book is None:
        return redirect(url_for(".book_list"))

    if request.method == "POST":
        if not book_instances:
            store.books.delete_by_id(request.form.get("bookid"))
            LOG.info("Deleted book %s", request.form.get("bookid"))
            return redirect(url_for(".book_list"))
        LOG.info("Refused to delete book %s: %d cop(ies) still exist", book_id, len(book_instances))

    return render_template("book_delete.html", title="Delete Book", book=book, book_instances=book_instances)


# --- Book copies ---

def _book_instance_form(title, bookinstance, books, selected_book, errors=None):
    return render_template(
        "bookinstance_form.html",
        title=title,
        bookinstance=bookinstance,
        book_list=books,
        selected_book=selected_book,
        errors=errors,
    )


@bp.route("/bookinstances")
def bookinstance_list():
    bookinstances = store.book_instances.find_all()
    return render_template("bookinstance_list.html", title="Book Instance List", bookinstance_list=bookinstances)


@bp.route("/bookinstance/<bookinstance_id>")
def bookinstance_detail(bookinstance_id):
    bookinstance = store.book_instances.find_by_id(bookinstance_id)
    if bookinstance is None:
        raise EntityNotFound("Book copy", bookinstance_id)

    book_title = bookinstance.book.title if bookinstance.book is not None else ""
    return render_template("bookinstance_detail.html", title=f"Copy: {book_title}", bookinstance=bookinstance)


@bp.route("/bookinstance/create", methods=["GET", "POST"])
def bookinstance_create():
    if request.method == "GET":
        return _book_instance_form("Create BookInstance", None, store.books.find_all(), None)

    form = BookInstanceForm()
    bookinstance = BookInstance(**form.cleaned())

    if not form.validate():
        return _book_instance_form(
            "Create BookInstance", bookinstance, store.books.find_all(), bookinstance.book_id, form.error_list()
        )

    store.book_instances.insert(bookinstance)
    LOG.info("Created book copy %s", bookinstance.id)
    return redirect(bookinstance.detail_url)


@bp.route("/bookinstance/<bookinstance_id>/update", methods=["GET", "POST"])
def bookinstance_update(bookinstance_id):
    if request.method == "GET":
        bookinstance, books = gather(
            lambda: store.book_instances.find_by_id(bookinstance_id),
            store.books.find_all,
        )
        if bookinstance is None:
            raise EntityNotFound("Book copy", bookinstance_id)
        return _book_instance_form("Update BookInstance", bookinstance, books, bookinstance.book_id)

    form = BookInstanceForm()
    values = form.cleaned()

    if not form.validate():
        bookinstance = BookInstance(id=bookinstance_id, **values)
        return _book_instance_form(
            "Update BookInstance", bookinstance, store.books.find_all(), values["book_id"], form.error_list()
        )

    bookinstance = store.book_instances.replace(bookinstance_id, values)
    if bookinstance is None:
        raise EntityNotFound("Book copy", bookinstance_id)
    LOG.info("Updated book copy %s", bookinstance_id)
    return redirect(bookinstance.detail_url)


@bp.route("/bookinstance/<bookinstance_id>/delete", methods=["GET", "POST"])
def bookinstance_delete(bookinstance_id):
    """
    Confirm and delete a book copy. Copies have no dependents, and deleting
    one that is already gone is a no-op.
    """
    if request.method == "POST":
        deleted = store.book_instances.delete_by_id(request.form.get("bookinstanceid"))
        if deleted:
            LOG.info("Deleted book copy %s", request.form.get("bookinstanceid"))
        return redirect(url_for(".bookinstance_list"))

    bookinstance = store.book_instances.find_by_id(bookinstance_id)
    if bookinstance is None:
        return redirect(url_for(".bookinstance_list"))

    return render_template("bookinstance_delete.html", title="Delete BookInstance", bookinstance=bookinstance)
