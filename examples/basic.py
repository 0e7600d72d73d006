# Data API ORM Examples

# Meant to be run cell by cell: select a part of the code and execute it.
# The comments mark the cells.

# Load requirements

import asyncio
import os
from datetime import timedelta

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from dataapi_orm import DataAPIClient, DataAPIConfigDict, Database
from dataapi_sdk import DataAPIVector

# Load environment from .env (DATAAPI_ENDPOINT, DATAAPI_TOKEN, DATAAPI_KEYSPACE)
load_dotenv()

ENDPOINT = os.getenv("DATAAPI_ENDPOINT", "http://localhost:8181")
TOKEN = os.getenv("DATAAPI_TOKEN")
KEYSPACE = os.getenv("DATAAPI_KEYSPACE", "default_keyspace")


# A table-bound model. Field aliases are the column names.
class Book(BaseModel):
    model_config = DataAPIConfigDict(table_name="books")

    title: str
    year: int
    rating: float | None = None
    loan_period: timedelta | None = Field(default=None, alias="loan")


# A collection-bound model with a vector
class Review(BaseModel):
    model_config = DataAPIConfigDict(collection_name="reviews")

    id: str = Field(alias="_id")
    book: str
    text: str
    embedding: DataAPIVector | None = Field(default=None, alias="$vector")


async def create_schema(db: Database) -> None:
    await db.create_table(
        definition={
            "columns": {"title": "text", "year": "int", "rating": "float", "loan": "duration"},
            "primaryKey": "title",
        },
        if_not_exists=True,
        record_type=Book,
    )
    await db.get_table(record_type=Book).create_index("books_year_idx", "year", if_not_exists=True)
    await db.create_collection(definition={"vector": {"dimension": 3, "metric": "cosine"}}, record_type=Review)


async def insert_books(db: Database) -> None:
    books = db.get_table(record_type=Book)
    await books.insert_one(Book(title="Dune", year=1965, rating=4.6, loan=timedelta(days=14)))
    outcome = await books.insert_many(
        [Book(title=f"Volume {i}", year=2000 + i) for i in range(120)],
        chunk_size=50,
        concurrency=3,
    )
    print("Inserted:", len(outcome.inserted_ids))


async def query_books(db: Database) -> None:
    books = db.get_table(record_type=Book)
    cursor = books.find({"year": {"$gte": 2100}}).sort({"year": 1}).limit(5)
    async for book in cursor:
        print(book.title, book.year)

    await books.update_one({"title": "Dune"}, {"$set": {"rating": 4.7}})
    dune = await books.find_one({"title": "Dune"})
    print("Loan period:", dune.loan_period if dune else None)


async def insert_reviews(db: Database) -> None:
    reviews = db.get_collection(record_type=Review)
    await reviews.insert_many(
        [
            Review(_id="r1", book="Dune", text="Spice!", embedding=DataAPIVector([0.1, 0.2, 0.3])),
            Review(_id="r2", book="Dune", text="Sand everywhere", embedding=DataAPIVector([0.3, 0.2, 0.1])),
        ]
    )
    print("Reviews:", await reviews.count_documents({}, upper_bound=100))


async def vector_search(db: Database) -> None:
    reviews = db.get_collection(record_type=Review)
    cursor = reviews.find(sort={"$vector": [0.1, 0.2, 0.3]}, limit=1, include_similarity=True)
    print("Sort vector:", await cursor.get_sort_vector())
    for review in await cursor.to_list():
        print("Closest review:", review.text)


async def cleanup(db: Database) -> None:
    await db.drop_table("books", if_exists=True)
    await db.drop_collection("reviews")
    print("Schema dropped")


async def main():
    async with DataAPIClient(TOKEN).get_database(ENDPOINT, keyspace=KEYSPACE) as db:
        await create_schema(db)
        await insert_books(db)
        await query_books(db)
        await insert_reviews(db)
        await vector_search(db)
        await cleanup(db)


if __name__ == "__main__":
    # Run the async function
    asyncio.run(main())
