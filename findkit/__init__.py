"""File-matching predicates and an xargs-style command builder."""

__version__ = "0.1.0"