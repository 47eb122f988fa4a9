"""University job board: search ranking and deadline/alert notification passes."""

__version__ = "1.0.0"
