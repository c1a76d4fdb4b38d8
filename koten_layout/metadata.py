from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

from .classes import ClassTable


def load_class_names(metadata_path: Union[str, Path]) -> Dict[int, str]:
    """
    Read the `names:` block of an exported model's metadata file:

        names:
          0: 1_overall
          1: 2_handwritten
          ...

    Only `id: label` lines under `names:` are used; everything else is ignored,
    so no YAML parser is needed.
    """

    path = Path(metadata_path)
    if not path.exists():
        raise FileNotFoundError(f"Metadata not found: {path}")

    names: Dict[int, str] = {}
    in_names = False

    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            # A new top-level key ends the block.
            if not raw[:1].isspace() and not line[:1].isdigit():
                break

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    return names


def load_class_table(metadata_path: Union[str, Path]) -> ClassTable:
    """
    Build a ClassTable from a metadata file. Ids missing from the file get
    their stringified id as label so the table stays index-addressable.
    """

    names = load_class_names(metadata_path)
    if not names:
        return ClassTable(classes=(), colors=())
    size = max(names) + 1
    return ClassTable.from_labels(names.get(i, str(i)) for i in range(size))
