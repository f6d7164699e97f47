"""
Prometheus metric definitions.

Exposed by routes/metrics.py; incremented by the middleware, the Kakao
client and the login orchestrator.
"""
from prometheus_client import Counter, Histogram

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Login Metrics
# ============================================

logins_total = Counter(
    'kakao_logins_total',
    'Login callbacks by final outcome',
    ['outcome']
)

logouts_total = Counter(
    'kakao_logouts_total',
    'Logout requests by outcome',
    ['outcome']
)

provider_requests_total = Counter(
    'kakao_provider_requests_total',
    'Outbound Kakao API calls',
    ['operation', 'outcome']
)

user_persistence_failures_total = Counter(
    'user_persistence_failures_total',
    'User upserts that failed during an otherwise successful login'
)
