"""
Exception hierarchy for the sales data pipeline.

Exception Hierarchy:
    SalesPipelineError (base)
    ├── ContractViolation   - Raw table breaks a structural contract (fatal)
    └── InvalidArgument     - Report parameter is malformed or out of range
"""


class SalesPipelineError(Exception):
    """Base exception for all sales pipeline errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ContractViolation(SalesPipelineError):
    """
    Raw data cannot be made contract-compliant by dropping rows.

    Raised for missing schema columns or duplicated primary keys.
    """


class InvalidArgument(SalesPipelineError, ValueError):
    """Report parameter failed validation."""

    def __init__(self, message: str, details: str = None, parameter: str = None):
        super().__init__(message, details)
        self.parameter = parameter
