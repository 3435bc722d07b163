"""Execution core of a small shell: environment, builtins, PATH lookup and pipelines."""

__version__ = "0.1.0"
__all__ = ["builtins", "environment", "executor", "pathsearch", "textutil"]