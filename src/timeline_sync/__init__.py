"""Keep Markdown note frontmatter and a Markwhen-style timeline in sync."""

__version__ = "0.3.0"
