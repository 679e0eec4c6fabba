"""Constants for Seeds."""

from __future__ import annotations

# Data directory layout
SEEDS_DIR_NAME = ".seeds"
ISSUES_FILE = "issues.jsonl"
TEMPLATES_FILE = "templates.jsonl"
CONFIG_FILE = "config.yaml"
LOCK_SUFFIX = ".lock"

# Lock timing (seconds)
LOCK_STALE_SECONDS = 30.0
LOCK_RETRY_SECONDS = 0.1
LOCK_TIMEOUT_SECONDS = 30.0

# Default values
DEFAULT_PROJECT = "seeds"
DEFAULT_SCHEMA_VERSION = "1"
DEFAULT_TYPE = "task"
DEFAULT_PRIORITY = 2
DEFAULT_LIST_LIMIT = 50

TEMPLATE_ID_PREFIX = "tpl"
PREFIX_PLACEHOLDER = "{prefix}"

# ID generation: 4 hex chars, widened to 8 after this many collisions
ID_HEX_LENGTH = 4
ID_HEX_LENGTH_FALLBACK = 8
ID_MAX_ATTEMPTS = 100

PRIORITY_LABELS = {
    0: "Critical",
    1: "High",
    2: "Medium",
    3: "Low",
    4: "Backlog",
}

# Color mappings for CLI display
PRIORITY_COLORS = {
    0: "bright_red",
    1: "yellow",
    2: "white",
    3: "cyan",
    4: "bright_black",
}

TYPE_COLORS = {
    "task": "white",
    "bug": "bright_red",
    "feature": "bright_green",
    "epic": "bright_magenta",
}

# Lines written to .gitattributes so git merges the logs by union
GITATTRIBUTES_ENTRIES = (
    f"{SEEDS_DIR_NAME}/{ISSUES_FILE} merge=union",
    f"{SEEDS_DIR_NAME}/{TEMPLATES_FILE} merge=union",
)

# Patterns ignored inside the data directory
SEEDS_GITIGNORE_ENTRIES = ("*.lock", "*.tmp.*")

# Agent context: optional override read by ``sd prime``
PRIME_FILE = "PRIME.md"

# ``sd onboard`` section markers; bump the version when the snippet changes
ONBOARD_VERSION = 1
ONBOARD_START_MARKER = "<!-- seeds:start -->"
ONBOARD_END_MARKER = "<!-- seeds:end -->"
ONBOARD_CANDIDATE_FILES = ("CLAUDE.md", ".claude/CLAUDE.md", "AGENTS.md")
