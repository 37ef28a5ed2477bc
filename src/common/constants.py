"""Shared constants for reading-sync.

For environment-based configuration (source paths, output location), use the
env module:
    from common.env import env
    output_path = env.output_path()
"""

from pathlib import Path

APP_NAME = "readingsync"

# Default location of the exported library JSON
DEFAULT_OUTPUT_PATH = Path("~/.local/share") / APP_NAME / "library.json"

# Amazon region used for the Kindle notebook when none is configured
DEFAULT_KINDLE_REGION = "us"

# Values accepted as "true" for boolean environment flags
TRUTHY_VALUES: set[str] = {"1", "true", "yes", "on"}
