import uuid
from datetime import date

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

db = SQLAlchemy()

CATALOG_PREFIX = "/catalog"

BOOK_INSTANCE_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")
DEFAULT_BOOK_INSTANCE_STATUS = "Maintenance"


def new_id() -> str:
    """Opaque, store-generated record id."""
    return uuid.uuid4().hex


def format_date(value) -> str:
    """
    Medium display format, e.g. 'Jan 5, 1990'. Empty string for no date.
    """
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def iso_date(value) -> str:
    """
    'YYYY-MM-DD' for pre-filling <input type="date">. Empty string for no date.
    """
    return value.isoformat() if value is not None else ""


def fold_name(value) -> str:
    """Case-insensitive comparison key for genre names, Unicode aware."""
    return (value or "").casefold()


book_genres = db.Table(
    "book_genres",
    db.Column("book_id", db.String(32), db.ForeignKey("books.id"), primary_key=True),
    db.Column("genre_id", db.String(32), db.ForeignKey("genres.id"), primary_key=True),
)


class Genre(db.Model):
    """
    Genre model; books reference genres, never the other way round.
    """
    __tablename__ = 'genres'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    # Stored escaped, so wider than the 100 characters a user may type.
    name = db.Column(db.Text, nullable=False)
    name_key = db.Column(db.Text, nullable=False, index=True)

    @validates("name")
    def _fold_name(self, key, value):
        self.name_key = fold_name(value)
        return value

    @property
    def detail_url(self):
        return f"{CATALOG_PREFIX}/genre/{self.id}"

    def __repr__(self):
        return f"Genre(id = {self.id}, name = {self.name})"

    def __str__(self):
        return f"{self.name}"


class Author(db.Model):
    """
    Author model storing names and optional life dates.

    Display fields (name, formatted dates, url) are derived on read.
    """
    __tablename__ = 'authors'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    first_name = db.Column(db.Text, nullable=False)
    family_name = db.Column(db.Text, nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    date_of_death = db.Column(db.Date, nullable=True)

    @property
    def display_name(self):
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def detail_url(self):
        return f"{CATALOG_PREFIX}/author/{self.id}"

    @property
    def date_of_birth_formatted(self):
        return format_date(self.date_of_birth)

    @property
    def date_of_death_formatted(self):
        return format_date(self.date_of_death)

    @property
    def date_of_birth_iso(self):
        return iso_date(self.date_of_birth)

    @property
    def date_of_death_iso(self):
        return iso_date(self.date_of_death)

    @property
    def lifespan(self):
        if not self.date_of_birth and not self.date_of_death:
            return ""
        return f"{self.date_of_birth_formatted} - {self.date_of_death_formatted}"

    def __repr__(self):
        return f"Author(id = {self.id}, name = {self.display_name})"

    def __str__(self):
        return self.display_name


class Book(db.Model):
    """
    Book model storing title, summary, ISBN, its author and genres.

    The author reference is not enforced: a book may outlive its author
    row, in which case ``author`` resolves to None.
    """
    __tablename__ = 'books'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.Text, nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.Text, nullable=False)

    author_id = db.Column(db.String(32), db.ForeignKey("authors.id"), nullable=False, index=True)

    author = db.relationship("Author", lazy="joined")
    genres = db.relationship("Genre", secondary=book_genres, order_by="Genre.name", lazy="selectin")

    @property
    def detail_url(self):
        return f"{CATALOG_PREFIX}/book/{self.id}"

    @property
    def genre_ids(self):
        return [genre.id for genre in self.genres]

    def __repr__(self):
        return f"<Book id={self.id} title='{self.title}'>"

    def __str__(self):
        return self.title


class BookInstance(db.Model):
    """
    A physical copy of a book. Leaf entity: nothing references it.
    """
    __tablename__ = 'book_instances'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    book_id = db.Column(db.String(32), db.ForeignKey("books.id"), nullable=False, index=True)
    imprint = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=DEFAULT_BOOK_INSTANCE_STATUS)
    due_back = db.Column(db.Date, nullable=False, default=date.today)

    book = db.relationship("Book", lazy="joined")

    @property
    def detail_url(self):
        return f"{CATALOG_PREFIX}/bookinstance/{self.id}"

    @property
    def due_back_formatted(self):
        return format_date(self.due_back)

    @property
    def due_back_iso(self):
        return iso_date(self.due_back)

    def __repr__(self):
        return f"<BookInstance id={self.id} imprint='{self.imprint}' status={self.status}>"
