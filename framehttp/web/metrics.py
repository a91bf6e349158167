"""framehttp용 Prometheus 메트릭 정의."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest

# --- 연결 ---
connections_total  = Counter("framehttp_connections_total", "Accepted connections")
connections_active = Gauge("framehttp_connections_active", "Currently open connections")

# --- 요청 ---
requests_total = Counter(
    "framehttp_requests_total",
    "Requests answered",
    ["method", "code"],
)
protocol_errors_total = Counter(
    "framehttp_protocol_errors_total",
    "Protocol errors answered with an error response",
    ["code"],
)
stream_errors_total = Counter(
    "framehttp_stream_errors_total",
    "Connections torn down without a response",
)

# --- 처리 시간 ---
request_duration = Histogram(
    "framehttp_request_duration_seconds",
    "Handler + response write duration",
    ["method"],
)

# --- 본문 ---
body_bytes_sent = Counter("framehttp_body_bytes_sent", "Response body bytes written")


def get_metrics_output() -> bytes:
    """Prometheus 텍스트 노출 형식을 생성한다."""
    return generate_latest()
