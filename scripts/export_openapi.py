"""Write the OpenAPI document for the client code generator."""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, ".")

from app.main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-o", "--output", default="openapi.json", help="Output file")
    args = parser.parse_args()

    schema = create_app().openapi()
    Path(args.output).write_text(json.dumps(schema, indent=2) + "\n")
    print(f"Wrote {args.output}")


if __name__ == "__main__":
    main()
