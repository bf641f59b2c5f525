"""
YelpCamp Backend - Seed Data
==============================

What:  Fills the database with random sample campgrounds.
How:   Titles are "<descriptor> <place>", locations and coordinates come from
       a fixed list of US cities, prices are 20-49 and every campground gets
       the same two hosted sample images. Geometry is written directly, so no
       geocoding calls are made.

Usage:
    python -m app.seeds --author colt --count 50 --reset
"""

import argparse
import asyncio
import logging
import random
from typing import List, Optional, Sequence
from uuid import UUID

from app.database import async_session_factory, dispose_engine, init_models
from app.models.campground import Campground
from app.services.store import ResourceStore

logger = logging.getLogger(__name__)

DESCRIPTORS = [
    "Forest", "Ancient", "Petrified", "Roaring", "Cascade", "Tumbling",
    "Silent", "Redwood", "Bullfrog", "Maple", "Misty", "Elk", "Grizzly",
    "Ocean", "Sea", "Sky", "Dusty", "Diamond",
]

PLACES = [
    "Flats", "Village", "Canyon", "Pond", "Group Camp", "Horse Camp",
    "Ghost Town", "Camp", "Dispersed Camp", "Backcountry", "River", "Creek",
    "Creekside", "Bay", "Spring", "Bayshore", "Sands", "Mule Camp",
    "Hunting Camp", "Cliffs", "Hollow",
]

# (city, state, longitude, latitude)
CITIES = [
    ("New York", "New York", -74.0059, 40.7127),
    ("Los Angeles", "California", -118.2437, 34.0522),
    ("Chicago", "Illinois", -87.6298, 41.8781),
    ("Houston", "Texas", -95.3698, 29.7604),
    ("Phoenix", "Arizona", -112.0740, 33.4484),
    ("Denver", "Colorado", -104.9903, 39.7392),
    ("Seattle", "Washington", -122.3321, 47.6062),
    ("Portland", "Oregon", -122.6765, 45.5231),
    ("Salt Lake City", "Utah", -111.8910, 40.7608),
    ("Boise", "Idaho", -116.2023, 43.6150),
    ("Missoula", "Montana", -113.9940, 46.8721),
    ("Flagstaff", "Arizona", -111.6513, 35.1983),
    ("Asheville", "North Carolina", -82.5515, 35.5951),
    ("Burlington", "Vermont", -73.2121, 44.4759),
    ("Duluth", "Minnesota", -92.1005, 46.7867),
    ("Bend", "Oregon", -121.3153, 44.0582),
]

SAMPLE_IMAGES = [
    {
        "url": "https://res.cloudinary.com/dkrwyznvg/image/upload/v1632751890/seeder/autumn_cqyggb.jpg",
        "filename": "seeder/autumn_cqyggb",
    },
    {
        "url": "https://res.cloudinary.com/dkrwyznvg/image/upload/v1632751889/seeder/mountains_e6mznu.jpg",
        "filename": "seeder/mountains_e6mznu",
    },
]

DESCRIPTION = (
    "Lorem ipsum dolor sit amet consectetur adipisicing elit. Qui quaerat debitis "
    "cum expedita. Repellat cum tenetur est ipsam dolores, voluptate delectus "
    "nesciunt aut architecto vitae. Molestias ut necessitatibus magnam. Dolores?"
)


def random_campground(author_id: UUID, rng: random.Random) -> Campground:
    city, state, longitude, latitude = rng.choice(CITIES)
    return Campground(
        title=f"{rng.choice(DESCRIPTORS)} {rng.choice(PLACES)}",
        location=f"{city}, {state}",
        geometry={"type": "Point", "coordinates": [longitude, latitude]},
        description=DESCRIPTION,
        price=float(rng.randint(20, 49)),
        images=[dict(image) for image in SAMPLE_IMAGES],
        author_id=author_id,
        reviews=[],
    )


async def seed_campgrounds(
    store: ResourceStore,
    author_id: UUID,
    count: int,
    rng: Optional[random.Random] = None,
) -> List[Campground]:
    rng = rng or random.Random()
    created = []
    for _ in range(count):
        created.append(await store.add_campground(random_campground(author_id, rng)))
    logger.info("Seeded %d campgrounds for author %s", len(created), author_id)
    return created


async def reset(store: ResourceStore) -> None:
    reviews = await store.delete_all_reviews()
    campgrounds = await store.delete_all_campgrounds()
    logger.info("Reset: removed %d campgrounds and %d reviews", campgrounds, reviews)


async def run(author: str, count: int, wipe: bool) -> int:
    await init_models()
    try:
        async with async_session_factory() as session:
            store = ResourceStore(session)
            user = await store.get_user_by_username(author)
            if user is None:
                logger.error("No user named %r; register one first", author)
                return 1
            if wipe:
                await reset(store)
            await seed_campgrounds(store, user.id, count)
        return 0
    finally:
        await dispose_engine()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="app.seeds", description="Insert sample campgrounds.")
    parser.add_argument("--author", required=True, help="username that will own the campgrounds")
    parser.add_argument("--count", type=int, default=50, help="how many to insert (default: 50)")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="delete every campground and review first",
    )
    args = parser.parse_args(argv)
    if args.count < 0:
        parser.error("--count must not be negative")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    args = parse_args(argv)
    return asyncio.run(run(args.author, args.count, args.reset))


if __name__ == "__main__":
    raise SystemExit(main())
