"""
Read-only MySQL gateway exposed over the Model Context Protocol.
"""

__version__ = "1.0.0"
