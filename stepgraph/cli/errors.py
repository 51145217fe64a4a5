"""CLI-specific exceptions with Rich display support."""

from typing import List, Optional


class StepGraphCLIError(Exception):
    """Base exception for CLI operations with Rich display support."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(message)


class InputFileNotFoundError(StepGraphCLIError):
    """Raised when the step container file cannot be found."""

    def __init__(self, path: str):
        self.path = path
        message = f"Input file not found: {path}"
        suggestions = [
            "Check the path and file name",
            "Decode the vendor export to JSON or YAML first",
        ]
        super().__init__(message, suggestions)


class InputDecodeError(StepGraphCLIError):
    """Raised when the input file is not valid JSON or YAML."""

    def __init__(self, path: str, parse_error: str):
        self.path = path
        self.parse_error = parse_error
        message = f"Could not decode {path}: {parse_error}"
        suggestions = [
            "Use a .json, .yml or .yaml file",
            'The document must look like {"ArrayOfStep": {"Step": [...]}}',
        ]
        super().__init__(message, suggestions)


class ConfigurationError(StepGraphCLIError):
    """Raised when the configuration file cannot be used."""

    def __init__(self, error_message: str, path: Optional[str] = None):
        self.path = path
        self.error_message = error_message
        message = f"Invalid configuration: {error_message}"
        suggestions = ["Allowed modes: business, technical"]
        if path:
            suggestions.insert(0, f"Check {path}")
        super().__init__(message, suggestions)
