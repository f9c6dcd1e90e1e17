class LeetStreakError(ValueError):
    """Base class for validation failures raised by the streak and leaderboard helpers."""


class ParseError(LeetStreakError):
    """A date or record could not be parsed."""


class InvalidDateError(LeetStreakError):
    """A date lies in the future relative to the reference day."""


class InvalidArgumentError(LeetStreakError):
    """A paging, windowing or ordering argument is out of range."""
