"""Car quote API: customer quotes and the admin dashboard backend."""

__version__ = "0.1.0"
