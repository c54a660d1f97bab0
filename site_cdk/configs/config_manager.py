from __future__ import annotations
import json, logging, os, re
from pathlib import Path
from typing import Any, Mapping, Optional
from aws_cdk import Stack
from jsonschema import Draft202012Validator
from site_cdk.configs.site_cfg import SiteCfg, get_cfg
from site_cdk.configs.error_handler import validate_config_file
from site_cdk.edge.header_rules import HeaderSet, header_rules_from

logger = logging.getLogger(__name__)

_VAR = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

class ConfigManager:
    """
    Centralized configuration management for the static site CDK project.

    Handles:
    - Path resolution for different config types (headers, policies, schemas)
    - JSON file loading with placeholder expansion
    - Schema validation of header set files
    """

    # Root config directory (next to this module, independent of the cwd)
    CONFIG_ROOT = Path(__file__).resolve().parent

    # Config type mappings to subdirectories
    CONFIG_PATHS = {
        "headers": "headers",
        "policies": "iam/policies",
        "schemas": "schema",
    }

    def __init__(self, stack: Stack, cfg: Optional[SiteCfg] = None):
        self.stack = stack
        self.cfg = cfg or get_cfg(stack)
        self.vars = self.cfg.vars(stack)

    def get_config_path(self, config_type: str, filename: str = None) -> str:
        """
        Get the full path to a config file.

        Args:
            config_type: Type of config (headers, policies, schemas)
            filename: Optional filename, if None returns the directory path

        Returns:
            Full path to the config file or directory
        """
        if config_type not in self.CONFIG_PATHS:
            raise ValueError(f"Unknown config type: {config_type}")

        base_path = os.path.join(self.CONFIG_ROOT, self.CONFIG_PATHS[config_type])

        if filename:
            if os.path.isabs(filename):
                return filename
            return os.path.join(base_path, filename)
        return base_path

    def expand_placeholders(self, obj: Any, vars: Mapping[str, str] = None) -> Any:
        """
        Recursively expand ${VAR} placeholders in strings, lists, and dicts.

        Args:
            obj: Object to expand placeholders in
            vars: Variables to substitute (uses stack vars if None)

        Returns:
            Object with placeholders expanded
        """
        if vars is None:
            vars = self.vars

        if isinstance(obj, str):
            return _VAR.sub(lambda m: str(vars.get(m.group(1), m.group(0))), obj)
        if isinstance(obj, list):
            return [self.expand_placeholders(x, vars) for x in obj]
        if isinstance(obj, dict):
            return {k: self.expand_placeholders(v, vars) for k, v in obj.items()}
        return obj

    def load_json(self, filepath: str, expand_vars: bool = True) -> Any:
        """
        Load and parse a JSON file, optionally expanding placeholders.

        Args:
            filepath: Path to the JSON file
            expand_vars: Whether to expand placeholders in the loaded JSON

        Returns:
            Parsed JSON
        """
        validate_config_file(filepath)

        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        if expand_vars:
            data = self.expand_placeholders(data)

        return data

    def load_config(self, config_type: str, filename: str, expand_vars: bool = True) -> Any:
        """
        Load a config file by type and filename.

        Args:
            config_type: Type of config (headers, policies, schemas)
            filename: Name of the config file
            expand_vars: Whether to expand placeholders

        Returns:
            Parsed JSON config
        """
        filepath = self.get_config_path(config_type, filename)
        return self.load_json(filepath, expand_vars)

    def validate_against_schema(self, data: Any, schema_file: str, source: str) -> None:
        """
        Validate loaded JSON against one of the bundled schemas.

        Args:
            data: Parsed JSON document
            schema_file: Schema filename under configs/schema
            source: Name of the validated file, for error messages

        Raises:
            ValueError: If the document does not match the schema
        """
        schema = self.load_config("schemas", schema_file, expand_vars=False)
        errors = sorted(Draft202012Validator(schema).iter_errors(data), key=lambda e: list(e.path))
        if errors:
            details = "; ".join(
                f"{'/'.join(map(str, e.path)) or '(root)'}: {e.message}" for e in errors
            )
            raise ValueError(f"{source} does not match {schema_file}: {details}")

    def load_header_set(self, filename: Optional[str] = None) -> HeaderSet:
        """
        Load the ordered header set applied to every site response.

        Args:
            filename: Header file under configs/headers (defaults to cfg.headers_file)

        Returns:
            Tuple of validated header rules, in file order
        """
        filename = filename or self.cfg.headers_file
        data = self.load_config("headers", filename)
        self.validate_against_schema(data, "headers.schema.json", filename)

        header_set = header_rules_from(data["headers"])
        logger.info("Loaded %d response header(s) from %s", len(header_set), filename)
        return header_set
