"""
Command-line interface for assetminifier.
"""
