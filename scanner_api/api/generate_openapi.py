"""Dump the OpenAPI document: python -m scanner_api.api.generate_openapi [output]"""

import json
import sys
from pathlib import Path

from scanner_api.api.main import app

DEFAULT_OUTPUT = Path("interfaces") / "openapi.json"


def write_openapi(output: Path = DEFAULT_OUTPUT) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(app.openapi(), indent=2), encoding="utf-8")
    return output


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    print(write_openapi(target))
