"""
Seed script — populates the database with demo users, books, and reviews.
Run: python -m bookreview.seed
"""

from __future__ import annotations

import asyncio
import random
from datetime import date

from sqlalchemy import select

from bookreview.auth.password import hash_password
from bookreview.database import Base, async_session, engine
from bookreview.models.book import Book
from bookreview.models.review import Review
from bookreview.models.user import User
from bookreview.services.ratings import recompute_book_rating

SAMPLE_BOOKS = [
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "genre": "Science Fiction",
        "description": "A noble family is handed stewardship of the desert planet Arrakis, "
        "the only source of the most valuable substance in the universe.",
        "publication_date": date(1965, 8, 1),
        "isbn": "978-0441172719",
    },
    {
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "genre": "Science Fiction",
        "description": "An envoy to the ice world Gethen must navigate a society whose "
        "people have no fixed sex.",
        "publication_date": date(1969, 3, 1),
        "isbn": "978-0441478125",
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "genre": "Romance",
        "description": "Elizabeth Bennet and Mr. Darcy misjudge each other across the "
        "drawing rooms of Regency England.",
        "publication_date": date(1813, 1, 28),
        "isbn": "978-0141439518",
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "genre": "Dystopian",
        "description": "Winston Smith works for the Party rewriting history, and begins "
        "to doubt it.",
        "publication_date": date(1949, 6, 8),
        "isbn": "978-0451524935",
    },
    {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "genre": "Fantasy",
        "description": "Bilbo Baggins is swept out of his hobbit-hole on a quest to "
        "reclaim a dwarf kingdom from a dragon.",
        "publication_date": date(1937, 9, 21),
        "isbn": "978-0547928227",
    },
    {
        "title": "Beloved",
        "author": "Toni Morrison",
        "genre": "Historical Fiction",
        "description": "A formerly enslaved woman in post-Civil War Ohio is haunted by "
        "the ghost of her daughter.",
        "publication_date": date(1987, 9, 2),
        "isbn": "978-1400033416",
    },
    {
        "title": "The Name of the Rose",
        "author": "Umberto Eco",
        "genre": "Mystery",
        "description": "A Franciscan friar investigates a series of deaths in an Italian "
        "abbey in 1327.",
        "publication_date": date(1980, 1, 1),
        "isbn": "978-0156001311",
    },
    {
        "title": "Sapiens",
        "author": "Yuval Noah Harari",
        "genre": "Non-Fiction",
        "description": "A brief history of humankind from the Stone Age to the present.",
        "publication_date": date(2011, 1, 1),
        "isbn": "978-0062316097",
    },
]

SAMPLE_USERS = [
    {"email": "alice@example.com", "username": "alice", "password": "Alice123"},
    {"email": "bob@example.com", "username": "bob", "password": "Bob12345"},
    {"email": "carol@example.com", "username": "carol", "password": "Carol123"},
    {"email": "dave@example.com", "username": "dave", "password": "Dave1234"},
]

SAMPLE_REVIEW_TEXTS = {
    1: "Could not get into it at all, gave up halfway.",
    2: "A few good ideas but the pacing dragged badly.",
    3: "Solid and readable, though it never quite grabbed me.",
    4: "Really enjoyed this one, would happily recommend it.",
    5: "An absolute favourite. I will be rereading this for years.",
}


async def seed():
    """Seed the database with sample data."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        result = await session.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping.")
            return

        users = []
        for u in SAMPLE_USERS:
            user = User(
                email=u["email"],
                username=u["username"],
                hashed_password=hash_password(u["password"]),
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"Created {len(users)} users")

        books = []
        for b in SAMPLE_BOOKS:
            book = Book(**b, creator=random.choice(users))
            session.add(book)
            books.append(book)
        await session.flush()
        print(f"Created {len(books)} books")

        count = 0
        for user in users:
            for book in random.sample(books, random.randint(2, len(books))):
                rating = random.randint(1, 5)
                session.add(
                    Review(
                        book=book,
                        user=user,
                        rating=rating,
                        review_text=SAMPLE_REVIEW_TEXTS[rating],
                        likes=[],
                    )
                )
                count += 1
        await session.flush()
        print(f"Created {count} reviews")

        for book in books:
            await recompute_book_rating(session, book.id)

        await session.commit()
        print("Seeding complete!")


if __name__ == "__main__":
    asyncio.run(seed())
