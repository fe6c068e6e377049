"""
Configuration Module for the Syllabus Structure Extraction Engine

Loads configuration from environment variables (.env file) and validates
numeric settings. Includes AI collaborator settings, fallback budgets,
classifier overrides, file paths and the valid top-level numbering ranges
per education category.
"""

import os
import sys
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Note: Logger will be configured by setup_logger() in logging_config
# Import is deferred to avoid circular dependency during config loading


# Load environment variables from .env file
# Look for .env in the project root (parent of src/)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Try loading from current directory as fallback
    load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def get_env_variable(var_name: str, required: bool = True, default: Optional[str] = None) -> Optional[str]:
    """
    Get environment variable with validation.

    Args:
        var_name: Name of environment variable
        required: Whether this variable is required
        default: Default value if not required and not found

    Returns:
        Value of environment variable

    Raises:
        ConfigurationError: If required variable is missing
    """
    value = os.getenv(var_name)

    if value is None or value.strip() == "":
        if required:
            raise ConfigurationError(
                f"Required environment variable '{var_name}' is not set. "
                f"Please add it to your .env file."
            )
        return default

    return value.strip()


def get_int_variable(var_name: str, default: int) -> int:
    """
    Get an integer environment variable, falling back to a default.

    Raises:
        ConfigurationError: If the variable is set but not an integer
    """
    raw = get_env_variable(var_name, required=False)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable '{var_name}' must be an integer, got {raw!r}"
        ) from e


# ==================================
# AI Collaborator (Optional)
# ==================================

# Only required when the fallback extractor or document generation is invoked
CLAUDE_API_KEY = get_env_variable("CLAUDE_API_KEY", required=False)

CLAUDE_MODEL = get_env_variable("CLAUDE_MODEL", required=False, default="claude-3-5-sonnet-20240620")

try:
    CLAUDE_MAX_TOKENS = get_int_variable("CLAUDE_MAX_TOKENS", 4096)
    CLAUDE_TIMEOUT_SECONDS = get_int_variable("CLAUDE_TIMEOUT_SECONDS", 120)

    # Character budget of the document excerpt sent to the fallback extractor
    FALLBACK_MAX_INPUT_CHARS = get_int_variable("FALLBACK_MAX_INPUT_CHARS", 60000)

    # Number of leading words the content classifier inspects
    CLASSIFIER_LEADING_WORDS = get_int_variable("CLASSIFIER_LEADING_WORDS", 2)

except ConfigurationError as e:
    # Note: Using print() here because this runs during module import,
    # before logging is configured. Logging setup depends on config being loaded first.
    print(f"\n❌ Configuration Error: {e}", file=sys.stderr)
    sys.exit(1)


# ==================================
# Curriculum Numbering
# ==================================

# Enumerations enforced by the store (see database/schema.py)
CURRICULUM_TYPES = ("cbc", "obc")
EDUCATION_CATEGORIES = ("early-childhood", "primary", "secondary")

# Valid top-level numbers (grade/form) per education category, inclusive
TOP_LEVEL_RANGES = {
    "early-childhood": (0, 4),
    "primary": (1, 7),
    "secondary": (1, 12),
}

# Used when neither a grade range descriptor nor a category is given
DEFAULT_TOP_LEVEL_RANGE = (1, 12)


# ==================================
# File Paths
# ==================================

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Output database
DATABASE_PATH = Path(
    get_env_variable("SYLLABUS_DB_PATH", required=False)
    or PROJECT_ROOT / "data" / "syllabi.db"
)

# Optional JSON file overriding classifier keyword lists
_rules_path = get_env_variable("CLASSIFIER_RULES_PATH", required=False)
CLASSIFIER_RULES_PATH = Path(_rules_path) if _rules_path else None

# Conversion outputs kept for inspection
CONVERSION_OUTPUT_DIR = PROJECT_ROOT / "data" / "conversions"

# Logging directory
LOGS_DIR = PROJECT_ROOT / "logs"


# ==================================
# Logging Configuration
# ==================================

# Log level (used by logging_config.py)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Note: Log format, rotation, and retention are configured in src/utils/logging_config.py


# ==================================
# Validation on Import
# ==================================

def validate_configuration():
    """
    Validate configuration on module import.

    Checks:
    - Numeric values are in valid ranges
    - Top-level numbering ranges are well-formed
    - Classifier override file exists when configured

    Raises:
        ConfigurationError: If configuration is invalid
    """
    errors = []

    if CLAUDE_MAX_TOKENS <= 0:
        errors.append(f"CLAUDE_MAX_TOKENS must be positive, got {CLAUDE_MAX_TOKENS}")
    if CLAUDE_TIMEOUT_SECONDS <= 0:
        errors.append(f"CLAUDE_TIMEOUT_SECONDS must be positive, got {CLAUDE_TIMEOUT_SECONDS}")
    if FALLBACK_MAX_INPUT_CHARS <= 0:
        errors.append(f"FALLBACK_MAX_INPUT_CHARS must be positive, got {FALLBACK_MAX_INPUT_CHARS}")
    if CLASSIFIER_LEADING_WORDS <= 0:
        errors.append(f"CLASSIFIER_LEADING_WORDS must be positive, got {CLASSIFIER_LEADING_WORDS}")

    for category, (low, high) in TOP_LEVEL_RANGES.items():
        if category not in EDUCATION_CATEGORIES:
            errors.append(f"Unknown category in TOP_LEVEL_RANGES: {category}")
        if low > high:
            errors.append(f"Invalid top-level range for {category}: {low}-{high}")

    if CLASSIFIER_RULES_PATH is not None and not CLASSIFIER_RULES_PATH.exists():
        errors.append(f"Classifier rules file not found: {CLASSIFIER_RULES_PATH}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
        raise ConfigurationError(error_msg)


# Run validation on import
try:
    validate_configuration()
except ConfigurationError as e:
    print(f"\n❌ {e}", file=sys.stderr)
    sys.exit(1)


# ==================================
# Helper Functions
# ==================================

def get_top_level_range(category: Optional[str] = None) -> tuple[int, int]:
    """
    Get the valid top-level numbering range for an education category.

    Returns:
        Tuple of (lowest, highest) top-level number, inclusive
    """
    if category is None:
        return DEFAULT_TOP_LEVEL_RANGE
    return TOP_LEVEL_RANGES.get(category, DEFAULT_TOP_LEVEL_RANGE)


def print_configuration():
    """Print current configuration (for debugging)."""
    print("\n" + "=" * 80)
    print("Syllabus Structure Extraction Engine Configuration")
    print("=" * 80)
    print(f"\nAI Collaborator:")
    print(f"  CLAUDE_API_KEY: {'✓ Set' if CLAUDE_API_KEY else '- Not set (fallback disabled)'}")
    print(f"  Model: {CLAUDE_MODEL}")
    print(f"  Max tokens: {CLAUDE_MAX_TOKENS}")
    print(f"  Timeout: {CLAUDE_TIMEOUT_SECONDS}s")
    print(f"\nExtraction:")
    print(f"  Fallback input budget: {FALLBACK_MAX_INPUT_CHARS:,} chars")
    print(f"  Classifier leading words: {CLASSIFIER_LEADING_WORDS}")
    print(f"  Classifier rules: {CLASSIFIER_RULES_PATH or 'built-in'}")
    for category, (low, high) in TOP_LEVEL_RANGES.items():
        print(f"  Top-level range ({category}): {low}-{high}")
    print(f"\nFile Paths:")
    print(f"  Database: {DATABASE_PATH}")
    print(f"  Conversions: {CONVERSION_OUTPUT_DIR}")
    print(f"  Logs: {LOGS_DIR}")
    print("=" * 80 + "\n")


# Export all configuration variables
__all__ = [
    # AI collaborator
    "CLAUDE_API_KEY",
    "CLAUDE_MODEL",
    "CLAUDE_MAX_TOKENS",
    "CLAUDE_TIMEOUT_SECONDS",
    # Extraction settings
    "FALLBACK_MAX_INPUT_CHARS",
    "CLASSIFIER_LEADING_WORDS",
    "CLASSIFIER_RULES_PATH",
    # Curriculum numbering
    "CURRICULUM_TYPES",
    "EDUCATION_CATEGORIES",
    "TOP_LEVEL_RANGES",
    "DEFAULT_TOP_LEVEL_RANGE",
    # File paths
    "PROJECT_ROOT",
    "DATABASE_PATH",
    "CONVERSION_OUTPUT_DIR",
    "LOGS_DIR",
    # Logging
    "LOG_LEVEL",
    # Helper functions
    "ConfigurationError",
    "get_env_variable",
    "get_top_level_range",
    "print_configuration",
]
