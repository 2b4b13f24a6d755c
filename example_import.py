#!/usr/bin/env python3
"""Example: Import a chunk file as a new vector store."""

import os
import sys

from kb_store import KBStoreError, StoreRepository, StoreSession, load_chunk_file, load_settings


def main():
    settings = load_settings()
    source_file = os.getenv("SOURCE_FILE", "./vectorstore.json")

    if not os.path.isfile(source_file):
        print(f"Error: Chunk file not found: {source_file}")
        print("Set SOURCE_FILE environment variable or create ./vectorstore.json")
        sys.exit(1)

    print("=" * 60)
    print("KB Store Import")
    print("=" * 60)
    print(f"Source file:     {source_file}")
    print(f"Store directory: {settings.store_dir}")
    print("=" * 60)
    print()

    try:
        raw = load_chunk_file(source_file)
        with StoreRepository(settings.store_dir) as repository:
            session = StoreSession(repository, top_k=settings.top_k, show_progress=settings.show_progress)
            store_id = session.create_and_select(os.path.basename(source_file), raw)
            summary = session.summary

            print("New vector store saved to local storage.")
            print()
            print(f"Store id:          {store_id}")
            print(f"Total chunks:      {summary.total_chunks}")
            print(f"Unique sources:    {summary.unique_sources}")
            print(f"Total text length: {summary.total_text_length}")
            if summary.top_sources:
                print("\nTop sources:")
                for item in summary.top_sources:
                    print(f"  {item.count:>6}  {item.source}")

            print("\nAvailable stores:")
            for meta in session.list_metadata():
                marker = "*" if meta.id == store_id else " "
                print(f"  {marker} {meta.id}  {meta.file_name}")
        print("=" * 60)

    except KBStoreError as e:
        print(f"\nError processing file: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
