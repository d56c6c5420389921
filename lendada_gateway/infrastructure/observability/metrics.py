"""Prometheus metrics for monitoring credit scores, loan transitions, and ledger performance"""

from prometheus_client import Counter, Histogram

# Scoring metrics
scoring_job_counter = Counter(
    "lendada_scoring_jobs_total",
    "Scoring jobs finished",
    ["outcome"],  # completed | failed
)

credit_score_histogram = Histogram(
    "lendada_credit_score",
    "Distribution of computed credit scores",
    buckets=[300, 400, 500, 550, 600, 650, 700, 750, 800, 850],
)

risk_level_counter = Counter(
    "lendada_risk_level_total",
    "Credit scores issued by risk tier",
    ["risk_level"],
)

# Loan lifecycle metrics
loan_transition_counter = Counter(
    "lendada_loan_transitions_total",
    "Loan lifecycle operations",
    ["operation", "outcome"],  # create|fund|claim|repay x success|rejected|error
)

# Ledger metrics
ledger_latency_histogram = Histogram(
    "ledger_submit_latency_seconds",
    "Ledger submitter response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ledger_failure_counter = Counter(
    "ledger_submit_failures_total",
    "Failed ledger submissions",
    ["operation"],
)

# Metrics source
metrics_source_failures_counter = Counter(
    "metrics_source_failures_total",
    "On-chain data fetches that fell back to default metrics",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_credit_score(score: int, risk_level: str) -> None:
    """Record a completed score for tier distribution analysis"""
    scoring_job_counter.labels(outcome="completed").inc()
    credit_score_histogram.observe(score)
    risk_level_counter.labels(risk_level=risk_level).inc()


def record_loan_transition(operation: str, outcome: str) -> None:
    loan_transition_counter.labels(operation=operation, outcome=outcome).inc()
