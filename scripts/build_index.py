import argparse
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from topic_index import TopicIndex, TopicIndexError, ValidationError
from topic_index.config import settings
from topic_index.sources import load_records


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Validate topic records and build the search index.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=settings.records_path,
        help="JSON file or directory of JSON files (default: TOPIC_INDEX_RECORDS_PATH)",
    )
    parser.add_argument("--query", "-q", help="Run a search after building")
    parser.add_argument(
        "--facet",
        "-f",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Facet filter for --query (repeatable)",
    )
    parser.add_argument("--limit", type=int, default=10)
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper())

    if not args.path:
        parser.error("no record source given")

    print(f"Loading records from {args.path}...")
    try:
        records = load_records(args.path)
    except TopicIndexError as e:
        print(f"Error: {e}")
        return 2
    print(f"Found {len(records)} records.")

    index = TopicIndex()
    try:
        count = index.rebuild(records)
    except ValidationError as e:
        print(f"Validation failed with {len(e.violations)} violation(s):")
        for violation in e.violations:
            print(f"  {violation}")
        return 1

    stats = index.stats()
    print(f"Indexed {count} topics ({stats.total_terms} terms, {stats.total_postings} postings).")
    for category, n in stats.categories.items():
        print(f"  {category}: {n}")

    if args.query is not None or args.facet:
        facets = {}
        for item in args.facet:
            key, _, value = item.partition("=")
            facets.setdefault(key, []).append(value)

        page = index.search(args.query or "", facets, 0, args.limit)
        print(f"\n{page.total} match(es):")
        for hit in page.hits:
            topic = index.get_topic(hit.topic_id)
            print(f"  {hit.score:7.3f}  {topic.id}  {topic.title}")

    index.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
