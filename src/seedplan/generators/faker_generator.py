"""Faker-based data generator."""

from datetime import datetime
from typing import Any

from faker import Faker

from seedplan.generators.base import BaseGenerator

# Fixed window so generated timestamps do not depend on the current date
DATE_WINDOW_START = datetime(2020, 1, 1)
DATE_WINDOW_END = datetime(2025, 12, 31)


class FakerGenerator(BaseGenerator):
    """Generate realistic data using Faker library, reseeded per value."""

    # Column name → Faker method mapping
    COLUMN_MAPPINGS = {
        "email": lambda fake: fake.email(),
        "first_name": lambda fake: fake.first_name(),
        "last_name": lambda fake: fake.last_name(),
        "name": lambda fake: fake.name(),
        "display_name": lambda fake: fake.user_name(),
        "username": lambda fake: fake.user_name(),
        "company": lambda fake: fake.company(),
        "phone": lambda fake: fake.phone_number(),
        "phone_number": lambda fake: fake.phone_number(),
        "address": lambda fake: fake.address(),
        "street": lambda fake: fake.street_address(),
        "city": lambda fake: fake.city(),
        "state": lambda fake: fake.state(),
        "country": lambda fake: fake.country(),
        "zip": lambda fake: fake.zipcode(),
        "zipcode": lambda fake: fake.zipcode(),
        "timezone": lambda fake: fake.timezone(),
        "url": lambda fake: fake.url(),
        "url_slug": lambda fake: fake.slug(),
        "slug": lambda fake: fake.slug(),
        "password": lambda fake: fake.password(),
        "message": lambda fake: fake.sentence(),
        "description": lambda fake: fake.text(max_nb_chars=200),
        "bio": lambda fake: fake.text(max_nb_chars=300),
    }

    # Type-based fallbacks
    TYPE_FALLBACKS = {
        "text": lambda fake: fake.text(max_nb_chars=50),
        "character varying": lambda fake: fake.text(max_nb_chars=50),
        "varchar": lambda fake: fake.text(max_nb_chars=50),
        "uuid": lambda fake: fake.uuid4(),
        "integer": lambda fake: fake.random_int(min=1, max=1000),
        "int": lambda fake: fake.random_int(min=1, max=1000),
        "int4": lambda fake: fake.random_int(min=1, max=1000),
        "bigint": lambda fake: fake.random_int(min=1, max=100000),
        "int8": lambda fake: fake.random_int(min=1, max=100000),
        "smallint": lambda fake: fake.random_int(min=1, max=100),
        "int2": lambda fake: fake.random_int(min=1, max=100),
        "numeric": lambda fake: fake.pyfloat(min_value=0, max_value=10000, right_digits=2),
        "real": lambda fake: fake.pyfloat(min_value=0, max_value=10000),
        "double precision": lambda fake: fake.pyfloat(min_value=0, max_value=10000),
        "boolean": lambda fake: fake.boolean(),
        "bool": lambda fake: fake.boolean(),
        "timestamp without time zone": lambda fake: _date_time(fake),
        "timestamp with time zone": lambda fake: _date_time(fake),
        "timestamp": lambda fake: _date_time(fake),
        "timestamptz": lambda fake: _date_time(fake),
        "date": lambda fake: _date_time(fake).date(),
        "json": lambda fake: {"value": fake.word()},
        "jsonb": lambda fake: {"value": fake.word()},
    }

    def __init__(self, locale: str | None = None):
        self.fake = Faker(locale)

    def generate(self, column_name: str, data_type: str, **context: Any) -> Any:
        """Generate data for a column based on name and type."""
        seed = context.get("seed")
        if seed is not None:
            self.fake.seed_instance(seed)

        # UUID columns keep UUID shape whatever their name
        if data_type == "uuid":
            return self.fake.uuid4()

        # Try column name mapping first
        if column_name in self.COLUMN_MAPPINGS:
            return self.COLUMN_MAPPINGS[column_name](self.fake)

        # Fall back to type-based generation
        if data_type in self.TYPE_FALLBACKS:
            return self.TYPE_FALLBACKS[data_type](self.fake)

        # Default: text
        return self.fake.text(max_nb_chars=50)


def _date_time(fake: Faker) -> datetime:
    return fake.date_time_between(start_date=DATE_WINDOW_START, end_date=DATE_WINDOW_END)
