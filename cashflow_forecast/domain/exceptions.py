"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDefinitionError(DomainException):
    """Recurring definition is missing a field or carries an impossible value"""

    def __init__(self, definition_id: str, reason: str):
        super().__init__(f"Definition {definition_id}: {reason}")
        self.definition_id = definition_id
        self.reason = reason


class UnknownAccountError(InvalidDefinitionError):
    """Definition points at an account that is not part of the snapshot"""

    pass


class AmountOverflowError(DomainException):
    """Money value exceeds the supported bound"""

    pass


class InvalidForecastInputError(DomainException):
    """Forecast request as a whole cannot be evaluated (bad horizon, duplicate accounts)"""

    pass


class InvalidPaymentTermsError(DomainException):
    """Invoice payment terms cannot be turned into a day count"""

    pass
