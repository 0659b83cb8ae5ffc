"""
Form validation and sanitization for the catalog entities.

Each form trims its string inputs, checks them against the field rules and
exposes ``cleaned()``: the submitted values, HTML-escaped, in the shape the
store expects. Errors are reported one message per violated rule.
"""

from datetime import date

from flask_wtf import FlaskForm
from markupsafe import escape
from wtforms import SelectField, SelectMultipleField, StringField, TextAreaField
from wtforms.validators import AnyOf, Length, Optional, Regexp, ValidationError

from data_models import BOOK_INSTANCE_STATUSES, DEFAULT_BOOK_INSTANCE_STATUS

ALPHANUMERIC = r"^[A-Za-z0-9]+$"


def strip(value):
    return value.strip() if isinstance(value, str) else value


def sanitize(value):
    """
    HTML-escape a submitted string. Non-strings pass through.
    """
    if isinstance(value, str):
        return str(escape(value))
    return value


def parse_date(value):
    """
    Parse an ISO 'YYYY-MM-DD' string into a date; blank gives None.
    """
    value = (value or "").strip()
    if not value:
        return None
    return date.fromisoformat(value)


class IsoDate:
    """
    Validator: field holds a parsable ISO date.
    """

    def __init__(self, message=None):
        self.message = message or "Invalid date"

    def __call__(self, form, field):
        try:
            parse_date(field.data)
        except ValueError:
            raise ValidationError(self.message)


class CatalogForm(FlaskForm):

    def error_list(self):
        """
        Flat list of {"field", "msg"} entries, in field order.
        """
        return [
            {"field": name, "msg": message}
            for name, messages in self.errors.items()
            for message in messages
        ]


class GenreForm(CatalogForm):
    name = StringField(
        "Genre",
        filters=[strip],
        validators=[
            Length(min=3, message="Genre name must contain at least 3 characters"),
            Length(max=100, message="Genre name must not exceed 100 characters"),
        ],
    )

    def cleaned(self):
        return {"name": sanitize(self.name.data or "")}


class AuthorForm(CatalogForm):
    first_name = StringField(
        "First Name",
        filters=[strip],
        validators=[
            Length(min=1, message="First name must be specified."),
            Length(max=100, message="First name must not exceed 100 characters."),
            Regexp(ALPHANUMERIC, message="First name has non-alphanumeric characters."),
        ],
    )
    family_name = StringField(
        "Family Name",
        filters=[strip],
        validators=[
            Length(min=1, message="Family name must be specified."),
            Length(max=100, message="Family name must not exceed 100 characters."),
            Regexp(ALPHANUMERIC, message="Family name has non-alphanumeric characters."),
        ],
    )
    date_of_birth = StringField(
        "Date of birth",
        filters=[strip],
        validators=[Optional(), IsoDate("Invalid date of birth")],
    )
    date_of_death = StringField(
        "Date of death",
        filters=[strip],
        validators=[Optional(), IsoDate("Invalid date of death")],
    )

    def cleaned(self):
        """
        Sanitized values; dates that failed to parse come back as None.
        """
        return {
            "first_name": sanitize(self.first_name.data or ""),
            "family_name": sanitize(self.family_name.data or ""),
            "date_of_birth": _safe_date(self.date_of_birth.data),
            "date_of_death": _safe_date(self.date_of_death.data),
        }


class BookForm(CatalogForm):
    title = StringField(
        "Title",
        filters=[strip],
        validators=[Length(min=1, message="Title must not be empty.")],
    )
    author = SelectField(
        "Author",
        filters=[strip],
        validate_choice=False,
        validators=[Length(min=1, message="Author must not be empty.")],
    )
    summary = TextAreaField(
        "Summary",
        filters=[strip],
        validators=[Length(min=1, message="Summary must not be empty.")],
    )
    isbn = StringField(
        "ISBN",
        filters=[strip],
        validators=[Length(min=1, message="ISBN must not be empty.")],
    )
    # Read with getlist, so always a list whether zero, one or many were checked.
    genre = SelectMultipleField("Genre", validate_choice=False)

    def cleaned(self):
        return {
            "title": sanitize(self.title.data or ""),
            "author_id": sanitize(self.author.data or ""),
            "summary": sanitize(self.summary.data or ""),
            "isbn": sanitize(self.isbn.data or ""),
            "genre_ids": [sanitize(strip(g)) for g in (self.genre.data or [])],
        }


class BookInstanceForm(CatalogForm):
    book = SelectField(
        "Book",
        filters=[strip],
        validate_choice=False,
        validators=[Length(min=1, message="Book must be specified")],
    )
    imprint = StringField(
        "Imprint",
        filters=[strip],
        validators=[Length(min=1, message="Imprint must be specified")],
    )
    status = SelectField(
        "Status",
        choices=[(status, status) for status in BOOK_INSTANCE_STATUSES],
        default=DEFAULT_BOOK_INSTANCE_STATUS,
        filters=[strip],
        validate_choice=False,
        validators=[AnyOf(BOOK_INSTANCE_STATUSES, message="Invalid status")],
    )
    due_back = StringField(
        "Date when book available",
        filters=[strip],
        validators=[Optional(), IsoDate("Invalid date")],
    )

    def cleaned(self):
        """
        Sanitized values; a blank due date means due back today.

        An unparseable due date comes back as None so the re-rendered
        form shows an empty date rather than a made-up one.
        """
        raw_due_back = self.due_back.data
        return {
            "book_id": sanitize(self.book.data or ""),
            "imprint": sanitize(self.imprint.data or ""),
            "status": sanitize(self.status.data or DEFAULT_BOOK_INSTANCE_STATUS),
            "due_back": _safe_date(raw_due_back) if raw_due_back else date.today(),
        }


def _safe_date(value):
    try:
        return parse_date(value)
    except ValueError:
        return None
