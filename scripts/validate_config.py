#!/usr/bin/env python3
"""
Check header set files before they are used by `cdk synth`.

Each file is validated against the header set schema and then loaded as
header rules, so header names the edge runtime refuses (Content-Length, Via,
X-Amz-Cf-*, ...) and other rule errors are reported as well.

    python scripts/validate_config.py site_cdk/configs/headers/*.json
"""

import argparse
import json
import sys
from typing import List, Optional

from jsonschema import Draft202012Validator

from site_cdk.edge.header_rules import header_rules_from

DEFAULT_SCHEMA = "site_cdk/configs/schema/headers.schema.json"


def check_header_file(path: str, validator: Draft202012Validator) -> List[str]:
    """
    Validate one header set file.

    Args:
        path: Header set file
        validator: Validator for the header set schema

    Returns:
        Problems found, empty when the file is usable
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        return [f"unreadable JSON ({e})"]

    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        return [f"{'/'.join(map(str, e.path)) or '(root)'}: {e.message}" for e in errors]

    try:
        header_rules_from(data["headers"])
    except (TypeError, ValueError) as e:
        return [str(e)]
    return []


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    ap.add_argument("--schema", default=DEFAULT_SCHEMA, help="Header set schema")
    ap.add_argument("files", nargs="+", help="Header set files")
    args = ap.parse_args(argv)

    with open(args.schema, "r", encoding="utf-8") as f:
        validator = Draft202012Validator(json.load(f))

    bad = False
    for path in args.files:
        problems = check_header_file(path, validator)
        if problems:
            bad = True
            print(f"[X] {path}: {len(problems)} error(s)")
            for problem in problems:
                print(f"  - {problem}")
        else:
            print(f"[OK] {path}")
    return 1 if bad else 0


if __name__ == "__main__":
    sys.exit(main())
