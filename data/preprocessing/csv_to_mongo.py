import asyncio
import argparse
import os
from pathlib import Path
import sys
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import UpdateOne

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.append(str(project_root))

from models.models import Shlok
from retrieval.csv_datasource import DataSource

TARGET_DB = os.getenv("MONGO_DB", "tamohar")
TARGET_COLLECTION = "shloks"


def build_operation(shlok: Shlok) -> UpdateOne:
    doc = shlok.to_mongo()
    # Existing shloks are left untouched
    return UpdateOne(
        {"chapter": doc["chapter"], "verse": doc["verse"]},
        {"$setOnInsert": doc},
        upsert=True,
    )


async def import_shloks(collection, shloks: list[Shlok], batch_size: int = 100) -> dict:
    added = 0
    skipped = 0
    operations = []
    for shlok in shloks:
        operations.append(build_operation(shlok))
        if len(operations) >= batch_size:
            result = await collection.bulk_write(operations, ordered=False)
            added += result.upserted_count
            skipped += len(operations) - result.upserted_count
            operations = []

    # Process remaining operations
    if operations:
        result = await collection.bulk_write(operations, ordered=False)
        added += result.upserted_count
        skipped += len(operations) - result.upserted_count

    return {"success": True, "added": added, "skipped": skipped}


async def process_csv_to_mongo(csv_path: str, batch_size: int = 100):
    datasource = DataSource(csv_path)
    shloks = datasource.read_csv()
    print("Read CSV - complete. Found {} shloks".format(len(shloks)))

    client = AsyncIOMotorClient(host=os.getenv("MONGO_URI"))
    collection = client[TARGET_DB][TARGET_COLLECTION]
    await collection.create_index([("chapter", 1), ("verse", 1)])

    try:
        summary = await import_shloks(collection, shloks, batch_size=batch_size)
    finally:
        client.close()

    print(
        f"Import complete. Added: {summary['added']}, Skipped (already exists): {summary['skipped']}"
    )
    return summary


def main():
    parser = argparse.ArgumentParser(description="Upload shlok CSV data to MongoDB")
    parser.add_argument("csv_path", help="Path to the input CSV file")
    parser.add_argument("--batch-size", type=int, default=100)
    args = parser.parse_args()

    asyncio.run(process_csv_to_mongo(args.csv_path, batch_size=args.batch_size))


if __name__ == "__main__":
    main()
