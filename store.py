"""
Entity store: one ``Collection`` per catalog entity kind.

Each collection wraps a Flask-SQLAlchemy model and exposes the small set
of reads and writes the catalog handlers need. Every call runs against
``db.session`` of the current application context and any
``SQLAlchemyError`` is rolled back and re-raised as ``StoreFailure``.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import load_only

from data_models import db, fold_name, Author, Book, BookInstance, Genre
from errors import StoreFailure
from logging_setup import get_logger

LOG = get_logger(__name__)


@contextmanager
def _guard(operation: str):
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        LOG.exception("Store failure during %s", operation)
        raise StoreFailure(operation, exc) from exc


class Collection:
    """
    Store operations for a single model.

    ``order_by`` gives the natural sort applied by ``find_all`` and ``find``.
    """

    def __init__(self, model, order_by=()):
        self.model = model
        self.order_by = tuple(order_by)

    @property
    def name(self):
        return self.model.__name__

    def _query(self):
        return db.session.query(self.model)

    def find_all(self):
        with _guard(f"{self.name}.find_all"):
            return self._query().order_by(*self.order_by).all()

    def find_by_id(self, entity_id):
        """
        Return the record with ``entity_id`` or None.
        """
        if not entity_id:
            return None
        with _guard(f"{self.name}.find_by_id"):
            return db.session.get(self.model, entity_id)

    def find(self, *criteria, fields=None):
        """
        Records matching every criterion, in natural order.

        ``fields`` names the columns to load (the id is always loaded).
        """
        with _guard(f"{self.name}.find"):
            query = self._query().filter(*criteria)
            if fields:
                query = query.options(load_only(*(getattr(self.model, f) for f in fields)))
            return query.order_by(*self.order_by).all()

    def find_one(self, *criteria):
        with _guard(f"{self.name}.find_one"):
            return self._query().filter(*criteria).first()

    def count(self, *criteria):
        with _guard(f"{self.name}.count"):
            return self._query().filter(*criteria).count()

    def insert(self, entity):
        """
        Persist a new record; the store assigns its id.
        """
        with _guard(f"{self.name}.insert"):
            db.session.add(entity)
            db.session.commit()
        return entity

    def replace(self, entity_id, values: dict):
        """
        Overwrite the fields of the record ``entity_id`` in place.

        Returns the updated record, or None when no such record exists.
        The id itself is never changed.
        """
        with _guard(f"{self.name}.replace"):
            entity = db.session.get(self.model, entity_id) if entity_id else None
            if entity is None:
                return None
            for key, value in values.items():
                if key == "id":
                    continue
                setattr(entity, key, value)
            db.session.commit()
        return entity

    def delete_by_id(self, entity_id) -> bool:
        """
        Delete the record if it exists. Returns whether a row was removed.
        """
        with _guard(f"{self.name}.delete_by_id"):
            entity = db.session.get(self.model, entity_id) if entity_id else None
            if entity is None:
                return False
            db.session.delete(entity)
            db.session.commit()
        return True


authors = Collection(Author, order_by=(Author.family_name, Author.first_name))
genres = Collection(Genre, order_by=(Genre.name,))
books = Collection(Book, order_by=(Book.title,))
book_instances = Collection(BookInstance)


def genre_by_name(name: str):
    """
    Case-insensitive lookup of a genre by name.
    """
    return genres.find_one(Genre.name_key == fold_name(name))


def books_by_author(author_id):
    return books.find(Book.author_id == author_id, fields=("title", "summary"))


def books_in_genre(genre_id):
    return books.find(Book.genres.any(Genre.id == genre_id), fields=("title", "summary"))


def instances_of_book(book_id):
    return book_instances.find(BookInstance.book_id == book_id)


def genres_by_ids(genre_ids):
    """
    Genre rows for the given ids; ids that no longer resolve are dropped.
    """
    ids = [genre_id for genre_id in genre_ids if genre_id]
    if not ids:
        return []
    return genres.find(Genre.id.in_(ids))
