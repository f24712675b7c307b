"""Persist segment records as JSON lines."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator

from core.segment import Segment
from utils.formatting import to_jsonl


def write_jsonl(segments: Iterable[Segment], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for line in to_jsonl(segments):
            f.write(line + "\n")


def read_jsonl(path: Path) -> Iterator[Segment]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_number}: invalid segment record") from exc
            yield Segment.from_dict(record)
