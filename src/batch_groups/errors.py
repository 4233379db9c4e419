from __future__ import annotations


class GroupingError(ValueError):
    """Base class for recoverable grouping failures."""


class InvalidConfiguration(GroupingError):
    pass


class EmptyInput(GroupingError):
    pass


class UnknownGroup(GroupingError):
    pass


class InvalidIndex(GroupingError):
    pass
