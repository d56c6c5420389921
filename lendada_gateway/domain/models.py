"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from lendada_gateway.utils.date_utils import utcnow


class RiskLevel(str, Enum):
    """Credit tier, ordered from safest to riskiest"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class LoanStatus(str, Enum):
    """Loan lifecycle: PENDING -> FUNDED -> ACTIVE -> REPAID"""

    PENDING = "PENDING"
    FUNDED = "FUNDED"
    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    DEFAULTED = "DEFAULTED"
    CANCELLED = "CANCELLED"


class TransactionType(str, Enum):
    IDENTITY_MINT = "IDENTITY_MINT"
    LOAN_CREATE = "LOAN_CREATE"
    LOAN_FUND = "LOAN_FUND"
    LOAN_CLAIM = "LOAN_CLAIM"
    LOAN_REPAY = "LOAN_REPAY"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class OnChainMetrics:
    """Behavioral signals for one address, amounts in ADA"""

    total_transactions: int = 0
    total_value_transacted: float = 0.0
    account_age_days: int = 0
    staking_activity: bool = False
    nft_count: int = 0
    defi_interactions: int = 0
    average_balance: float = 0.0
    consistent_activity: bool = False


@dataclass
class CreditFactor:
    """Single scored factor with its exact contribution"""

    name: str
    value: str
    impact: Impact
    weight: int


@dataclass
class CreditScoreRequest:
    """Input of a scoring job"""

    borrower_address: str
    loan_amount: float  # ADA
    duration: int  # days


@dataclass
class CreditScoreResult:
    """Output of the scoring engine"""

    score: int
    risk_level: RiskLevel
    factors: List[CreditFactor]
    recommendation: str
    max_loan_amount: float  # ADA
    suggested_interest_rate: int  # basis points


@dataclass
class ScoringJob:
    """Snapshot of a scoring job as seen by pollers"""

    job_id: str
    status: JobStatus
    progress: int = 0
    result: Optional[CreditScoreResult] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)
