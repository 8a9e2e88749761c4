"""
assetminifier: merge and prune game asset ZIP packages according to a rules file.
"""

__version__ = "0.1.0"
