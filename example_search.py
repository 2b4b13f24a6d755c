#!/usr/bin/env python3
"""Example: Select a stored vector store and query it."""

import os
import sys

from kb_store import (
    KBStoreError,
    StoreRepository,
    StoreSession,
    build_context_text,
    load_settings,
    preview_chunks,
)


def main():
    settings = load_settings()
    store_id = os.getenv("STORE_ID")

    print("=" * 60)
    print("KB Store Query Example")
    print("=" * 60)
    print(f"Store directory: {settings.store_dir}")
    print()

    with StoreRepository(settings.store_dir) as repository:
        session = StoreSession(repository, top_k=settings.top_k, show_progress=settings.show_progress)

        try:
            if store_id:
                session.select_store(int(store_id))
            elif session.restore() is None:
                print("Error: No vector stores found. Run example_import.py first.")
                sys.exit(1)
        except (KBStoreError, ValueError) as e:
            print(f"Error loading store: {e}", file=sys.stderr)
            sys.exit(1)

        summary = session.summary
        print(f"✓ Loaded {session.file_name} (id {session.active_id})")
        print(f"  - Chunks:         {summary.total_chunks}")
        print(f"  - Unique sources: {summary.unique_sources}")
        print()

        for item in preview_chunks(session.chunks, settings.preview_limit, settings.preview_width):
            print(f"ID          : {item['id']}")
            print(f"Source      : {item['source']}")
            print(f"Start Index : {item['startIndex']}")
            print(item["text"])
            print()

        print("=" * 60)
        print("Enter queries (or 'quit' to exit)")
        print("=" * 60)
        print()

        while True:
            query = input("Query: ").strip()
            if not query or query.lower() in ("quit", "exit", "q"):
                break

            print()
            results = session.search(query)
            if not results:
                print("No matching chunks.")
                print()
                continue

            for rank, result in enumerate(results, start=1):
                chunk = result.chunk
                excerpt = chunk.text
                if len(excerpt) > 150:
                    excerpt = excerpt[:150].rstrip() + "..."
                print(f"[{rank}] Score: {result.score:.4f}")
                print(f"    Source: {chunk.source} @ {chunk.start_index}")
                print(f"    Text:   {excerpt}")
                print()

            if os.getenv("SHOW_CONTEXT"):
                print("Context:")
                print(build_context_text(results))
                print()

    print("Goodbye!")


if __name__ == "__main__":
    main()
