from __future__ import annotations

# RNCI_COMMAND_TIMEOUT and RNCI_MATRIX_DIR are read by the CLI options,
# where click reports malformed values
DEFAULT_COMMAND_TIMEOUT = 120.0
DEFAULT_MATRIX_DIR = "configs"
