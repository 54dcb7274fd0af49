"""
linesearch - in-memory full-text line search over JSON-RPC.
"""

__version__ = "0.1.0"
