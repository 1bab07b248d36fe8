from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики аутентификации
sign_in_attempts_total = Counter(
    'sign_in_attempts_total',
    'Sign-in attempts by role and outcome',
    ['role', 'outcome']
)

sign_ups_total = Counter('sign_ups_total', 'Created accounts by role', ['role'])

guard_denials_total = Counter(
    'guard_denials_total',
    'Requests redirected to sign-in by the role guard',
    ['role', 'reason']
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")
