from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the calendar reconciliation engine.

These are the typed values the loader (config/loader.py) produces and the
services consume. Defaults reproduce the portal's built-in behaviour so that a
run without a config file reconciles exactly like the web upload did.
"""

REQUIRED_FAMILIES: tuple[str, ...] = (
    "date",
    "client",
    "post_type",
    "hashtags",
    "campaign",
    "priority",
)

DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("Date", "date"),
    "client": ("Client", "client", "Client Name", "client_name"),
    "post_type": ("Post type", "post type", "post_type", "PostType"),
    # "Hastags" is the legacy template spelling still found in operator sheets
    "hashtags": ("Hastags", "Hashtags", "hashtags"),
    "campaign": ("Campaign", "campaign"),
    "priority": ("priority", "Priority"),
}

DEFAULT_BUSINESS_SUFFIXES: tuple[str, ...] = (
    "inc.",
    "inc",
    "ltd.",
    "ltd",
    "llc",
    "corp.",
    "corp",
    "company",
    "co.",
    "co",
    "restaurant",
    "restaurants",
)

DEFAULT_PUNCTUATION = "&,._-()"

# NBSP, U+2000..U+200B, line/paragraph separators, ideographic space
DEFAULT_SPACE_VARIANTS = (
    "\u00a0"
    + "".join(chr(c) for c in range(0x2000, 0x200C))
    + "\u2028\u2029\u3000"
)

DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%d/%m/%Y")


@dataclass(frozen=True)
class MatchingRules:
    """Tunables for client-name normalization and the matching cascade.

    Passed into ClientResolver; nothing in the resolver reads module globals.
    """
    business_suffixes: tuple[str, ...] = DEFAULT_BUSINESS_SUFFIXES
    punctuation: str = DEFAULT_PUNCTUATION
    space_variants: str = DEFAULT_SPACE_VARIANTS
    fuzzy_threshold: float = 0.70  # similarity must be strictly greater
    word_overlap_fraction: float = 0.5
    min_token_length: int = 3  # tokens must be longer than this


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ReconcileConfig:
    """Root configuration object for a reconciliation run."""
    column_aliases: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_COLUMN_ALIASES)
    )
    matching: MatchingRules = field(default_factory=MatchingRules)
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    default_priority: str = "Medium"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
