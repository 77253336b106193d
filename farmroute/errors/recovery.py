"""
Recovery categories that are outcomes rather than failures.
"""

from typing import Optional


class UserCancelled(Exception):
    """A confirmation prompt was declined; the transition is abandoned."""

    def __init__(self, message: str = "Cancelled by user", prompt: Optional[str] = None):
        super().__init__(message)
        self.prompt = prompt
        self.recoverable = True
