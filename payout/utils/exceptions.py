"""
Distribution error taxonomy.

Defines categorized exception types for proper error handling.
"""


class DistributionError(Exception):
    """Base class for distribution engine errors."""


class NotFoundError(DistributionError):
    """Raised when a trading result or user does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class AlreadyProcessedError(DistributionError):
    """Raised when a trading result has already been distributed."""

    def __init__(self, trading_result_id: int) -> None:
        self.trading_result_id = trading_result_id
        super().__init__(
            f"Trading result {trading_result_id} already processed"
        )


class DuplicateTradingDateError(DistributionError):
    """Raised when a trading result already exists for a date."""


class InvalidInputError(DistributionError):
    """Raised when operator input fails validation."""


class ConfigurationError(DistributionError):
    """Raised when rank or level bonus configuration is missing or invalid."""


class ConcurrencyConflictError(DistributionError):
    """Raised when a row update lost a race with another writer."""

    def __init__(self, user_id: int, attempts: int = 1) -> None:
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"Concurrent update of user {user_id} "
            f"(after {attempts} attempt(s))"
        )


class LockAcquisitionError(DistributionError):
    """Raised when another distribution run holds the lock."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Lock {key!r} is held by another run")


class ReferralIntegrityError(DistributionError):
    """Raised when the referrer graph violates its forest shape."""


class ReferralCycleError(ReferralIntegrityError):
    """Raised when a referral walk revisits a user."""

    def __init__(
        self,
        source_user_id: int,
        repeated_user_id: int,
        credited,
        hops_credited: int = 0,
    ) -> None:
        self.source_user_id = source_user_id
        self.repeated_user_id = repeated_user_id
        # Amount already credited on the walk before the cycle was found
        self.credited = credited
        self.hops_credited = hops_credited
        super().__init__(
            f"Referral cycle at user {repeated_user_id} "
            f"while walking upline of user {source_user_id}"
        )


# Exception categories based on handling strategy

# Reported to the operator; nothing was written
TERMINAL = (
    NotFoundError,
    AlreadyProcessedError,
    DuplicateTradingDateError,
    ConfigurationError,
    InvalidInputError,
)

# Safe to retry; the run resumes from its pending markers
RETRYABLE = (
    ConcurrencyConflictError,
    LockAcquisitionError,
)

# Aborts one user's bonus walk, never the run
ISOLATED = (
    ReferralIntegrityError,
)


def is_terminal(exc: Exception) -> bool:
    """
    Check if exception is terminal.

    Args:
        exc: Exception to check

    Returns:
        True if retrying cannot succeed
    """
    return isinstance(exc, TERMINAL)


def is_retryable(exc: Exception) -> bool:
    """
    Check if exception can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if a retry may succeed
    """
    return isinstance(exc, RETRYABLE)


def is_isolated(exc: Exception) -> bool:
    """
    Check if exception only affects a single user's bonus walk.

    Args:
        exc: Exception to check

    Returns:
        True if the run may continue
    """
    return isinstance(exc, ISOLATED)
