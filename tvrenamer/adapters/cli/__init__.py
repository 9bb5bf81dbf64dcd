"""
Adaptateur CLI de TVRenamer (typer + rich).
"""

from .commands import rename, tokens

__all__ = ["rename", "tokens"]
