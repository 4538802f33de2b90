"""
blockflow — workflow graph engine for the visual block script editor.
"""

__version__ = "0.1.0"
