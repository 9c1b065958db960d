"""Core fetching components."""

from .fetcher import FetchError, HttpFetcher
from .protocols import Fetcher, Response

__all__ = ["Fetcher", "FetchError", "Response", "HttpFetcher"]
