"""Writing the analysis report to disk."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from isotarp.models import IsotarpAnalysis


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sorted_object(obj: dict[str, Any]) -> Any:
    # A numeric array short-circuits the whole enclosing object: the object is
    # replaced by the sorted integers of that array. Reports depend on this shape.
    result: dict[str, Any] = {}
    for key in sorted(obj):
        value = obj[key]
        if isinstance(value, dict):
            result[key] = _sorted_object(value)
        elif isinstance(value, list):
            items: list[Any] = []
            for item in value:
                if isinstance(item, dict):
                    items.append(_sorted_object(item))
                elif _is_number(item):
                    return sorted(
                        v for v in value if isinstance(v, int) and not isinstance(v, bool)
                    )
                else:
                    items.append(item)
            result[key] = items
        else:
            result[key] = value
    return result


def save_analysis(analysis: IsotarpAnalysis, output_path: str | os.PathLike[str]) -> None:
    """Write the analysis as pretty-printed JSON with keys in sorted order."""
    document = _sorted_object(analysis.to_dict())
    text = json.dumps(document, indent=2, ensure_ascii=False)
    Path(output_path).write_text(text, encoding="utf-8")