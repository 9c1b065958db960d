"""Mirror a website to local disk."""

__version__ = "0.1.0"
