"""Cascading merges across release branches of Bitbucket repositories."""

__version__ = "0.1.0"
