# linesearch_client/__init__.py
from .client import LineSearchClient

__all__ = ['LineSearchClient']
