"""WorkPulse: a personal work timer with session history, day summaries and exports."""

__version__ = "1.0.0"

from .cli import main  # noqa: E402

__all__ = ["main", "__version__"]
