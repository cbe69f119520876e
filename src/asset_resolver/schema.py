from typing import Literal

# ==========================================
# PROCESSING STATE VOCABULARY
# ==========================================

# Every content item starts UNPROCESSED and ends PROCESSED.
# Anything in between is an intermediate state named after the extension that
# produced it (e.g. "js" once a TypeScript file went through the compiler).
UNPROCESSED = "unprocessed"
PROCESSED = "processed"

TERMINAL_STATES = frozenset({PROCESSED})

# Version of the on-disk cache record layout.
# Bump it whenever CacheRecord.to_dict() changes shape: older records are then
# reported as corrupt and silently recomputed.
CACHE_SCHEMA_VERSION = 1

# Output groups an entry point is split into.
OUTPUT_GROUPS = Literal[
    "bundle",  # Application code, concatenated into <name>.js
    "vendor",  # Third-party code under node_modules, concatenated into <name>.vendor.js
    "asset",  # Standalone files compiled one-to-one (stylesheets, images...)
]

# Folder name that marks third-party code.
VENDOR_DIR = "node_modules"
