"""Database seeder: demo authors and articles for local development."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from catalog.config import get_settings
from catalog.database import Base, create_engine, create_session_factory
from catalog.models import Article, User
from catalog.security import get_password_hash

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "caching",
          "testing", "performance", "security", "asyncio", "sqlalchemy"]

DEMO_PASSWORD = "password123"


async def seed(small: bool = False) -> None:
    num_users = 5 if small else 50
    num_articles = 100 if small else 5000

    print(f"Seeding: {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    settings = get_settings()
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # Hash once; bcrypt is deliberately slow.
    password_hash = get_password_hash(DEMO_PASSWORD)

    async with session_factory() as session:
        users = []
        for i in range(num_users):
            user = User(
                email=f"author_{i:03d}@example.com",
                password_hash=password_hash,
                first_name="Author",
                last_name=f"{i:03d}",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (password: {DEMO_PASSWORD})")

        batch_size = 500
        now = datetime.now(timezone.utc)
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            for i in range(batch_start, batch_end):
                topic = random.choice(TOPICS)
                session.add(
                    Article(
                        title=f"Article {i}: Getting started with {topic}",
                        description=f"A practical introduction to {topic}. " * 10,
                        publication_date=now - timedelta(days=random.randint(0, 365)),
                        author_id=random.choice(users).id,
                    )
                )
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: articles created")

        await session.commit()

    await engine.dispose()
    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the catalog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
