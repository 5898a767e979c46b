"""Exceptions raised by the bank valuation engine."""


class BankRiskError(Exception):
    """Base error for bank accounting and valuation."""


class InvalidEnumTagError(BankRiskError, ValueError):
    """A decoded enum tag (risk tier, operational state, asset tag) is unknown."""


class InvalidMarginRequirementTypeError(BankRiskError, ValueError):
    """A weight or valuation was requested for an unknown margin requirement type."""


class InvalidLeverageError(BankRiskError, ValueError):
    """Target leverage is below 1 or above the bank pair's max leverage."""


class OracleKeyNotFoundError(BankRiskError, KeyError):
    """No oracle account is mapped to a bank's Pyth push feed id."""
