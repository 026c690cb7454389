"""Prometheus metrics."""
from prometheus_client import Counter, Histogram

DOCUMENTS_PROCESSED = Counter(
    "study_aid_documents_processed_total",
    "Documents run through extraction and chunking",
    ["status"],
)

LLM_REQUESTS = Counter(
    "study_aid_llm_requests_total",
    "Chat completion requests sent to the LLM provider",
    ["operation", "outcome"],
)

LLM_LATENCY = Histogram(
    "study_aid_llm_request_seconds",
    "Latency of chat completion requests",
    ["operation"],
)

QUIZ_SUBMISSIONS = Counter(
    "study_aid_quiz_submissions_total",
    "Graded quiz submissions",
)
