#!/usr/bin/env python3
"""
JSON schema validation for all static site configuration files.

This script validates every bundled header set and role policy file against
its schema. It's designed to be used as a pre-commit hook so a broken header
file is caught before `cdk synth`.
"""

import json
import sys
from pathlib import Path

from jsonschema import Draft202012Validator

CONFIG_ROOT = "site_cdk/configs"

# Schema to config directory mappings
SCHEMA_MAPPINGS = {
    "schema/headers.schema.json": "headers",
    "schema/policy.schema.json": "iam/policies",
}


def load_json(path: Path) -> dict:
    """Load and parse a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f"Failed to load {path}: {e}") from e


def validate_files_against_schema(schema_path: Path, config_files: list[Path]) -> bool:
    """Validate a list of config files against a schema."""
    try:
        schema = load_json(schema_path)
        validator = Draft202012Validator(schema)
    except ValueError as e:
        print(f"[X] Schema {schema_path}: {e}")
        return False

    all_valid = True
    for config_file in config_files:
        try:
            data = load_json(config_file)
        except ValueError as e:
            print(f"[X] {config_file}: {e}")
            all_valid = False
            continue

        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            all_valid = False
            print(f"[X] {config_file}: {len(errors)} error(s)")
            for error in errors:
                path = "/".join(map(str, error.path)) or "(root)"
                print(f"  - {path}: {error.message}")
        else:
            print(f"[OK] {config_file}: OK")

    return all_valid


def main():
    """Main validation function."""
    config_root = Path(__file__).parent.parent / CONFIG_ROOT
    all_valid = True

    print("Validating JSON configuration files against schemas...")
    print()

    for schema_file, config_dir in SCHEMA_MAPPINGS.items():
        schema_path = config_root / schema_file
        config_paths = sorted((config_root / config_dir).glob("*.json"))

        print(f"Validating against {schema_file}:")
        if not validate_files_against_schema(schema_path, config_paths):
            all_valid = False
        print()

    if all_valid:
        print("All configuration files are valid! [OK]")
        sys.exit(0)
    else:
        print("Some configuration files have validation errors! [X]")
        sys.exit(1)


if __name__ == "__main__":
    main()
