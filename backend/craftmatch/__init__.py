"""craftmatch — buyer-to-artisan matching service."""

__version__ = "0.1.0"
