# Mark services as a package and expose key service modules for tests to monkeypatch.

from . import gemini as gemini  # noqa: F401
from . import extraction as extraction  # noqa: F401

__all__ = [
    "gemini",
    "extraction",
]
