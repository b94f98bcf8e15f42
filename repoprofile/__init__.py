"""Repository profiling: languages, frameworks, team conventions and org-wide consistency."""

__version__ = "0.1.0"
