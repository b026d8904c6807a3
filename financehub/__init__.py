"""Top-level package for the Smart Finance Hub content pipeline.

This package contains the command-line entrypoint and all supporting modules
for generating, reviewing, publishing and archiving personal finance articles.
"""

__all__ = []
