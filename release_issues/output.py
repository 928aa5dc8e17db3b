from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .models import CombinedSearchResult, VersionEntry


def write_json(path: str | Path, result: CombinedSearchResult) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")
    return p


def write_versions_json(path: str | Path, versions: list[VersionEntry]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps({"versions": [asdict(v) for v in versions]}, indent=2) + "\n", encoding="utf-8")
    return p
