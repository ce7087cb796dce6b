"""
Sample data for the Book Lending MCP Server.

Generates a user directory and a local catalog with Faker so the server can
be explored without the external catalog. Generation is seeded, so every run
produces the same rows. The fixed user 1 and book 258027 are always present.
"""

import logging
import random
from decimal import Decimal

from faker import Faker

from .schema import Book, User
from .session import DatabaseManager

logger = logging.getLogger(__name__)

SEED = 42

SAMPLE_USER = {"id": 1, "name": "Juan Pérez", "email": "juan@example.com"}
SAMPLE_BOOK = {
    "external_id": 258027,
    "title": "El Gran Libro",
    "author_name": ["Ana Autora"],
    "price": Decimal("15.99"),
    "available_quantity": 5,
    "stock_quantity": 10,
}


def generate_users(fake: Faker, num_users: int) -> list[User]:
    """Directory members with unique emails, ids following the sample user."""
    users = [User(**SAMPLE_USER)]
    for user_id in range(2, num_users + 1):
        users.append(User(id=user_id, name=fake.name(), email=fake.unique.email()))
    return users


def generate_books(fake: Faker, rng: random.Random, num_books: int) -> list[Book]:
    """
    Catalog books with prices between 1.99 and 49.99 and full shelves.

    No reservations are generated, so available always equals stock for the
    generated books.
    """
    books = [Book(**SAMPLE_BOOK)]
    taken = {SAMPLE_BOOK["external_id"]}

    while len(books) < num_books:
        external_id = rng.randint(100000, 999999)
        if external_id in taken:
            continue
        taken.add(external_id)

        stock = rng.randint(1, 10)
        books.append(
            Book(
                external_id=external_id,
                title=fake.sentence(nb_words=rng.randint(2, 5)).rstrip("."),
                author_name=[fake.name() for _ in range(rng.choice((1, 1, 1, 2)))],
                # Whole cents, no float on the way in
                price=Decimal(rng.randint(199, 4999)) / 100,
                stock_quantity=stock,
                available_quantity=stock,
            )
        )
    return books


def seed_database(
    db_manager: DatabaseManager, num_users: int = 20, num_books: int = 50
) -> dict[str, int]:
    """
    Insert sample users and books in one transaction.

    Expects empty tables; rows with taken keys make the whole seed fail.

    Returns:
        Number of rows created per table
    """
    fake = Faker("es_ES")
    fake.seed_instance(SEED)
    rng = random.Random(SEED)

    users = generate_users(fake, num_users)
    books = generate_books(fake, rng, num_books)

    with db_manager.session_scope() as session:
        session.add_all(users)
        session.add_all(books)

    logger.info("Seeded %d users and %d books", len(users), len(books))
    return {"users": len(users), "books": len(books)}
