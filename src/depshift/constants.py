"""Constants used in the project."""

from enum import Enum


class Registry(Enum):
    """Package registries understood by the specifier parser and version source.

    Args:
        Enum (string): Registry prefix as it appears in a specifier.
    """

    JSR = "jsr"
    NPM = "npm"


class SourceType(Enum):
    """Where a package reference was found.

    Args:
        Enum (string): Source category reported on references and results.
    """

    CONFIG = "config"
    DEPS = "deps"
    TEMPLATE = "template"
    DOCS = "docs"
    OTHER = "other"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_JSR = "https://jsr.io"
    REGISTRY_URL_NPM = "https://registry.npmjs.org"
    SUPPORTED_REGISTRIES = [
        Registry.JSR.value,
        Registry.NPM.value,
    ]
    REQUEST_TIMEOUT = None  # Seconds; None defers to the HTTP client's defaults
    USER_AGENT = "depshift/0.4"
    LOG_FORMAT = "[%(levelname)s] %(message)s"

    # Workspace layout
    MANIFEST_FILES = ["deno.jsonc", "deno.json"]
    IGNORE_FILE = ".gitignore"
    # Directories never descended into while discovering projects
    PROJECT_SKIP_DIRS = ["node_modules", ".git", ".deno", "cov"]
    # Directories never scanned for references, regardless of the ignore file
    REFERENCE_SKIP_DIRS = [".git", "node_modules", ".deno", "cov", ".coverage"]
    # Files scanned for references in addition to project manifests
    REFERENCE_FILE_PATTERNS = [
        r"\.deps\.ts$",
        r"\.hbs$",
        r"\.mdx?$",
        r"\.tsx?$",
    ]
    DEPS_FILE_PATTERN = r"\.deps\.ts$"

    # Import map sync
    SYNC_IMPORTS_BEGIN = "// @sync-imports BEGIN ORIGINAL IMPORTS"
    SYNC_IMPORTS_END = "// @sync-imports END ORIGINAL IMPORTS"
    # A package is a runtime when every file of any one set sits beside its manifest
    RUNTIME_MARKER_FILES = [
        ["main.ts", "dev.ts", "DOCKERFILE"],
        [".cli.json"],
    ]

    # Version source
    VERSION_CACHE_TTL_SEC = None  # None keeps entries for the life of the cache
    VERSION_CACHE_MAX_ENTRIES = 5000
