"""
negconv - convert scanned film negatives into positives.
"""

__version__ = "1.0.0"
