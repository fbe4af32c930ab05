# Fetcher Package
from fetcher.host_safety import is_host_forbidden, resolve_and_check
from fetcher.redirect_fetcher import RedirectFetcher

__all__ = ["is_host_forbidden", "resolve_and_check", "RedirectFetcher"]
