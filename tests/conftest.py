"""Shared fixtures: an app bound to a throwaway SQLite file, a client and record factories."""
from __future__ import annotations

from datetime import date

import pytest
from flask import template_rendered

import fanout
import store
from app import create_app, init_db
from data_models import Author, Book, BookInstance, Genre, db


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'library.sqlite'}",
            "CATALOG_READ_WORKERS": 4,
        }
    )
    init_db(app)
    yield app
    fanout.shutdown()
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def rendered(app):
    """Record (template name, context) for every template rendered."""
    recorded: list[tuple[str, dict]] = []

    def record(sender, template, context, **extra):
        recorded.append((template.name, context))

    template_rendered.connect(record, app)
    try:
        yield recorded
    finally:
        template_rendered.disconnect(record, app)


class Factory:
    """Insert records through the store and hand back their ids."""

    def __init__(self, app):
        self.app = app

    def genre(self, name="Fantasy") -> str:
        with self.app.app_context():
            return store.genres.insert(Genre(name=name)).id

    def author(self, first_name="Jane", family_name="Austen", date_of_birth=None, date_of_death=None) -> str:
        with self.app.app_context():
            author = Author(
                first_name=first_name,
                family_name=family_name,
                date_of_birth=date_of_birth,
                date_of_death=date_of_death,
            )
            return store.authors.insert(author).id

    def book(self, author_id, title="Emma", genre_ids=(), summary="A novel.", isbn="9780141439587") -> str:
        with self.app.app_context():
            book = Book(
                title=title,
                summary=summary,
                isbn=isbn,
                author_id=author_id,
                genres=store.genres_by_ids(list(genre_ids)),
            )
            return store.books.insert(book).id

    def copy(self, book_id, imprint="Penguin, 2003", status="Available", due_back=None) -> str:
        with self.app.app_context():
            instance = BookInstance(
                book_id=book_id,
                imprint=imprint,
                status=status,
                due_back=due_back or date(2024, 1, 15),
            )
            return store.book_instances.insert(instance).id


@pytest.fixture
def factory(app):
    return Factory(app)
