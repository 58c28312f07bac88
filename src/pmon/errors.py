"""Exception hierarchy for pmon."""


class PmonError(Exception):
    """Base class for all pmon errors."""


class InvalidUnit(PmonError, ValueError):
    """A size unit suffix did not match any known unit."""

    def __init__(self, text: str) -> None:
        super().__init__(f"{text!r} is not a valid size unit")
        self.text = text


class InvalidNumeral(PmonError, ValueError):
    """The numeric part of a size could not be parsed."""

    def __init__(self, numeral: str, text: str) -> None:
        super().__init__(f"invalid numeral {numeral!r} in {text!r}")
        self.numeral = numeral
        self.text = text


class ProcessNotFound(PmonError, LookupError):
    """The accounting file for a process could not be read."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"no such pid ({pid})")
        self.pid = pid


class MalformedRecord(PmonError, ValueError):
    """The accounting file was readable but did not have the expected layout."""

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"couldn't scan statm data for pid {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class ConfigError(PmonError, ValueError):
    """Invalid command line or configuration value."""


class CommandError(PmonError, OSError):
    """The command to monitor could not be started."""
