"""
Centralized error handling for the static site CDK project.

This module provides the validation helpers and decorators shared by the
configuration loader, the header rule model and the construct builders. It
keeps error messages consistent so a failing `cdk synth` always points at the
offending configuration field.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Dict, List, Union
from functools import wraps

class ErrorHandler:
    """
    Centralized error handling for the static site CDK project.

    Provides decorators and utility methods for common validation scenarios.
    """

    @staticmethod
    def validate_path_exists(
            path: Union[str, Path],
            path_type: str = "Path"
        ) -> None:
        """
        Validate that a path exists and is a directory.

        Args:
            path: Path to validate
            path_type: Type description for error messages

        Raises:
            FileNotFoundError: If path does not exist or is not a directory
        """
        if not Path(path).is_dir():
            raise FileNotFoundError(f"{path_type} not found: {path}")

    @staticmethod
    def validate_file_exists(
            file_path: Union[str, Path],
            file_type: str = "File"
        ) -> None:
        """
        Validate that a file exists.

        Args:
            file_path: File path to validate
            file_type: Type description for error messages

        Raises:
            FileNotFoundError: If file does not exist
        """
        if not Path(file_path).is_file():
            raise FileNotFoundError(f"{file_type} not found: {file_path}")

    @staticmethod
    def validate_required_fields(
            data: Dict[str, Any],
            required_fields: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that all required fields are present in a dictionary.

        Args:
            data: Dictionary to validate
            required_fields: List of field names that must be present
            context: Context description for error messages

        Raises:
            ValueError: If any required fields are missing
        """
        missing_fields = [field for field in required_fields if field not in data]
        if missing_fields:
            raise ValueError(f"{context} missing required fields: {', '.join(missing_fields)}")

    @staticmethod
    def validate_enum_value(
            value: Any,
            valid_values: List[Any],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is one of the allowed enum values.

        Args:
            value: Value to validate
            valid_values: List of allowed values
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not in the allowed list
        """
        if value not in valid_values:
            raise ValueError(f"{context} field '{field_name}' must be one of: {', '.join(map(str, valid_values))}")

    @staticmethod
    def validate_type(
            value: Any,
            expected_type: Union[type, tuple],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is of the expected type.

        Args:
            value: Value to validate
            expected_type: Expected type class (or tuple of classes)
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            TypeError: If value is not of the expected type
        """
        if not isinstance(value, expected_type):
            expected = (
                " or ".join(t.__name__ for t in expected_type)
                if isinstance(expected_type, tuple)
                else expected_type.__name__
            )
            raise TypeError(f"{context} field '{field_name}' must be of type {expected}, got {type(value).__name__}")

    @staticmethod
    def validate_positive_integer(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a positive integer
        """
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{context} field '{field_name}' must be a positive integer")

    @staticmethod
    def validate_max_value(
            value: int,
            maximum: int,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a numeric value does not exceed a hard limit.

        Args:
            value: Value to validate
            maximum: Largest accepted value
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is greater than maximum
        """
        if value > maximum:
            raise ValueError(f"{context} field '{field_name}' must be at most {maximum}, got {value}")

    @staticmethod
    def validate_string_not_empty(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a non-empty string.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a non-empty string
        """
        if not isinstance(value, str) or value.strip() == "":
            raise ValueError(f"{context} field '{field_name}' must be a non-empty string")

    @staticmethod
    def validate_list_not_empty(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a non-empty list.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a non-empty list
        """
        if not isinstance(value, list) or len(value) == 0:
            raise ValueError(f"{context} field '{field_name}' must be a non-empty list")

    @staticmethod
    def validate_context_keys(
            missing_keys: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that required context keys are present.

        Args:
            missing_keys: List of missing key names
            context: Context description for error messages

        Raises:
            ValueError: If any required keys are missing
        """
        if missing_keys:
            raise ValueError(f"Missing required context keys in {context}: {', '.join(missing_keys)}")


class ValidationDecorators:
    """
    Decorators for common validation patterns.
    """

    @staticmethod
    def validate_required_config_fields(
            required_fields: List[str],
            config_param: str = "conf",
            context: str = "Configuration"
        ):
        """
        Decorator to validate that a configuration dictionary has all required fields.

        Args:
            required_fields: List of required field names
            config_param: Name of the config parameter to validate
            context: Context description for error messages

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                # Get the config value from function arguments
                if config_param in kwargs:
                    config_value = kwargs[config_param]
                else:
                    # Try to get from positional arguments
                    if len(args) > 2:  # Skip scope and logical_name
                        config_value = args[2]
                    else:
                        raise ValueError(f"Config parameter '{config_param}' not found in function arguments")

                ErrorHandler.validate_required_fields(config_value, required_fields, context)
                return func(*args, **kwargs)
            return wrapper
        return decorator


# Convenience functions for common validation patterns
def validate_assets_directory(assets_dir: str) -> None:
    """
    Validate that the static site build output directory exists.

    Args:
        assets_dir: Path to the built site assets

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    ErrorHandler.validate_path_exists(assets_dir, "Site assets directory")

def validate_config_file(file_path: str) -> None:
    """
    Validate that a configuration file exists.

    Args:
        file_path: Path to the configuration file

    Raises:
        FileNotFoundError: If the file does not exist
    """
    ErrorHandler.validate_file_exists(file_path, "Config file")

def validate_header_entry(
        entry: Any,
        index: int
    ) -> None:
    """
    Validate one raw header entry from a headers configuration list.

    Args:
        entry: Raw entry, expected to be {"key": ..., "value": ...}
        index: Position of the entry, used in error messages

    Raises:
        TypeError: If the entry is not a dictionary
        ValueError: If required fields are missing
    """
    ErrorHandler.validate_type(entry, dict, f"headers[{index}]", "Header configuration")
    ErrorHandler.validate_required_fields(entry, ["key", "value"], f"Header configuration entry #{index}")
