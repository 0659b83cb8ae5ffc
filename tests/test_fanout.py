"""Concurrent reads: ordering, overlap, isolation and error propagation."""
from __future__ import annotations

import threading

import pytest

import store
from data_models import db
from fanout import gather


def test_gather_returns_results_in_call_order(app):
    with app.app_context():
        assert gather(lambda: 1, lambda: "two", lambda: None) == (1, "two", None)


def test_gather_runs_calls_concurrently(app):
    barrier = threading.Barrier(2, timeout=5)

    def meet():
        barrier.wait()
        return threading.current_thread().name

    with app.app_context():
        first, second = gather(meet, meet)

    assert first != second
    assert first.startswith("catalog-read")


def test_each_call_gets_its_own_session(app):
    with app.app_context():
        outer = db.session()
        sessions = gather(lambda: db.session(), lambda: db.session())
    assert outer not in sessions
    assert sessions[0] is not sessions[1]


def test_gather_reads_the_store(app, factory):
    genre_id = factory.genre("Fantasy")
    author_id = factory.author()
    factory.book(author_id, genre_ids=[genre_id])

    with app.app_context():
        genre, books = gather(
            lambda: store.genres.find_by_id(genre_id),
            lambda: store.books_in_genre(genre_id),
        )

    assert genre.name == "Fantasy"
    assert [book.title for book in books] == ["Emma"]
    assert books[0].author.display_name == "Austen, Jane"


def test_gather_reraises_failures(app):
    def boom():
        raise LookupError("no such record")

    with app.app_context():
        with pytest.raises(LookupError, match="no such record"):
            gather(lambda: 1, boom)
