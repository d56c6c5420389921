"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    kind = "domain_error"


class ValidationError(DomainException):
    """Input is malformed or out of range"""

    kind = "validation_error"


class PreconditionError(DomainException):
    """Entity is in the wrong state or a prerequisite record is missing"""

    kind = "precondition_failed"


class NotFoundError(DomainException):
    """Requested entity does not exist"""

    kind = "not_found"


class AuthorizationError(DomainException):
    """Caller is not the entity's counterparty"""

    kind = "forbidden"


class UpstreamError(DomainException):
    """An external collaborator failed"""

    kind = "upstream_error"


class LedgerSubmissionError(UpstreamError):
    """Ledger submitter rejected the operation or is unavailable"""

    pass


class MetricsSourceError(UpstreamError):
    """On-chain data source returned an error or is unavailable"""

    pass


class ScoringJobFailedError(UpstreamError):
    """Scoring job reached the failed state"""

    pass


class JobTimeoutError(DomainException):
    """Scoring job did not finish within the polling budget"""

    kind = "timeout"
