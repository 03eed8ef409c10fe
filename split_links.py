#!/usr/bin/env python3
"""
Split a Printbox links file into chunk files for parallel workers.

Usage: python split_links.py [--input final.json] [--output-dir test-data/chunks] [--chunks 10]
"""

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from shared.config import get_config
from shared.logging import configure_logging_from_config
from suite.splitter import SUMMARY_FILENAME, split_links


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Split a links file into chunk files")
    parser.add_argument("--input", default="final.json", help="JSON array of links")
    parser.add_argument("--output-dir", default="test-data/chunks", help="Directory for chunk files")
    parser.add_argument("--chunks", type=int, default=10, help="Number of chunks to create")
    return parser


def main() -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args()

    configure_logging_from_config(get_config())

    try:
        manifest = split_links(args.input, args.output_dir, args.chunks)
    except (OSError, ValueError) as e:
        print("\n" + "=" * 80)
        print("SPLIT FAILED")
        print("=" * 80)
        print(f"\nError: {e}")
        sys.exit(1)

    print("\n" + "=" * 80)
    print("LINK CHUNKS")
    print("=" * 80)
    print(f"\nTotal links: {manifest.total_links}")
    print(f"Chunks: {manifest.num_chunks}")
    print(f"Chunk size: {manifest.chunk_size}")
    for chunk in manifest.chunks:
        print(
            f"  Chunk {chunk.chunk_id}: {chunk.count} links "
            f"(links {chunk.start_index}-{chunk.end_index}) -> {chunk.file}"
        )
    print(f"\nSummary written to {args.output_dir}/{SUMMARY_FILENAME}")
    print(json.dumps({"totalLinks": manifest.total_links, "numChunks": manifest.num_chunks}))


if __name__ == "__main__":
    main()
