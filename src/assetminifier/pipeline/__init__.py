from .minifier import AssetsMinifier, MinifyResult, RunState
from .runner import resolve_directory, run_minifier

__all__ = ["AssetsMinifier", "MinifyResult", "RunState", "resolve_directory", "run_minifier"]
