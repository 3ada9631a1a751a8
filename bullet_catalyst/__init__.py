"""Top-level package for the Bullet Catalyst news screen.

This package contains the application entrypoint and all supporting modules
for fetching financial headlines, scoring tickers with several LLM providers,
and rendering the ranked daily report.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
