"""Derived (display) fields on the catalog models."""
from __future__ import annotations

from datetime import date

from sqlalchemy import Text

from data_models import Author, Book, BookInstance, Genre, format_date, iso_date


def test_author_display_name_is_family_then_first():
    author = Author(first_name="Jane", family_name="Austen")
    assert author.display_name == "Austen, Jane"
    assert str(author) == "Austen, Jane"


def test_author_display_name_empty_when_a_name_is_missing():
    assert Author(first_name="", family_name="Austen").display_name == ""
    assert Author(first_name="Jane", family_name=None).display_name == ""


def test_detail_urls_are_keyed_by_id():
    assert Author(id="a1").detail_url == "/catalog/author/a1"
    assert Genre(id="g1").detail_url == "/catalog/genre/g1"
    assert Book(id="b1").detail_url == "/catalog/book/b1"
    assert BookInstance(id="c1").detail_url == "/catalog/bookinstance/c1"


def test_author_dates_formatted_and_iso():
    author = Author(first_name="Jane", family_name="Austen", date_of_birth=date(1775, 12, 16))
    assert author.date_of_birth_formatted == "Dec 16, 1775"
    assert author.date_of_birth_iso == "1775-12-16"
    assert author.date_of_death_formatted == ""
    assert author.date_of_death_iso == ""
    assert author.lifespan == "Dec 16, 1775 - "


def test_author_without_dates_has_no_lifespan():
    assert Author(first_name="Jane", family_name="Austen").lifespan == ""


def test_book_instance_due_back_fields():
    copy = BookInstance(due_back=date(2024, 3, 5))
    assert copy.due_back_formatted == "Mar 5, 2024"
    assert copy.due_back_iso == "2024-03-05"


def test_date_helpers_handle_missing_values():
    assert format_date(None) == ""
    assert iso_date(None) == ""


def test_genre_name_key_is_case_folded():
    genre = Genre(name="Épopée")
    assert genre.name_key == "épopée"
    genre.name = "STRASSE"
    assert genre.name_key == "strasse"


def test_escaped_text_columns_are_unbounded():
    columns = [
        Genre.__table__.c.name,
        Author.__table__.c.first_name,
        Author.__table__.c.family_name,
        Book.__table__.c.title,
        Book.__table__.c.isbn,
        BookInstance.__table__.c.imprint,
    ]
    for column in columns:
        assert isinstance(column.type, Text), column.name
