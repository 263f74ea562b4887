"""Exceptions raised by the points engine.

Only "cannot even begin" conditions (a missing season or league) abort an
operation. Per-row persistence failures surface as StoreError, are caught at
row scope by the aggregators and reported through their ``errors`` lists.
"""


class CFBFantasyError(Exception):
    """Base class for all points engine errors."""


class NotFoundError(CFBFantasyError, LookupError):
    """Raised when a season, league or other required entity does not exist.

    Example:
        raise NotFoundError(f'Season {year} not found')
    """


class StoreError(CFBFantasyError):
    """Raised when the relational store rejects a read or write."""


class UpstreamError(CFBFantasyError):
    """Raised when the external scoreboard or rankings source fails."""


class ConfigError(CFBFantasyError, ValueError):
    """Raised when configuration is missing or invalid."""
