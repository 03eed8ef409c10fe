"""
Split a links file into fixed-count chunk files for parallel workers.

Output layout (in `output_dir`):

- `links-chunk-{i}.json` for i in 1..num_chunks (trailing chunks may be empty)
- `chunks-summary.json` describing every chunk with 1-based inclusive indices
"""

from __future__ import annotations

import json
import math
from pathlib import Path

from shared.logging import get_logger
from suite.data_loader import strip_links_header
from suite.results import CamelModel

logger = get_logger(__name__)

CHUNK_FILE_TEMPLATE = "links-chunk-{}.json"
SUMMARY_FILENAME = "chunks-summary.json"


class ChunkInfo(CamelModel):
    chunk_id: int
    file: str
    start_index: int
    end_index: int
    count: int


class ChunkManifest(CamelModel):
    total_links: int
    num_chunks: int
    chunk_size: int
    chunks: list[ChunkInfo]


def split_links(input_path: str | Path, output_dir: str | Path, num_chunks: int = 10) -> ChunkManifest:
    """
    Raises FileNotFoundError / json.JSONDecodeError / ValueError on bad input.
    Files already written before a failure are left in place.
    """
    if num_chunks < 1:
        raise ValueError(f"num_chunks must be at least 1, got {num_chunks}")

    data = json.loads(Path(input_path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of links in {input_path}")
    links = strip_links_header(data)

    total = len(links)
    chunk_size = math.ceil(total / num_chunks)

    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)

    chunks: list[ChunkInfo] = []
    for i in range(num_chunks):
        start = min(i * chunk_size, total)
        end = min(start + chunk_size, total)
        filename = CHUNK_FILE_TEMPLATE.format(i + 1)
        (target / filename).write_text(json.dumps(links[start:end], indent=2), encoding="utf-8")
        chunks.append(
            ChunkInfo(
                chunk_id=i + 1,
                file=filename,
                start_index=start + 1,
                end_index=end,
                count=end - start,
            )
        )
        logger.info("chunk_written", chunk_id=i + 1, count=end - start, file=filename)

    manifest = ChunkManifest(
        total_links=total, num_chunks=num_chunks, chunk_size=chunk_size, chunks=chunks
    )
    (target / SUMMARY_FILENAME).write_text(
        json.dumps(manifest.to_json_dict(), indent=2), encoding="utf-8"
    )
    return manifest
