"""Domain errors raised by the PR engine."""


class PRLedgerError(Exception):
    """Base class for engine errors."""


class OneRepMaxNotApplicable(PRLedgerError, ValueError):
    """A one-rep max cannot be estimated for this set or exercise type."""

    @classmethod
    def for_modality(cls, modality: str) -> "OneRepMaxNotApplicable":
        return cls(f"1RM estimation is not supported for {modality} exercises")


class LedgerInvariantError(PRLedgerError):
    """A personal-record chain is out of order or has more than one current record."""
