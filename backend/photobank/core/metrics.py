"""Prometheus metrics: requests, upload batches, stored images, served files, moderation decisions."""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total requests",
    ["method", "path", "status_class"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency",
    ["method", "path"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
UPLOAD_BATCH_TOTAL = Counter(
    "image_upload_batches_total",
    "Upload batches",
    ["result"],  # success | failure
)
IMAGES_STORED_TOTAL = Counter(
    "images_stored_total",
    "Images transformed and recorded",
)
FILES_SERVED_TOTAL = Counter(
    "files_served_total",
    "Binary responses",
    ["kind", "result"],  # kind: image | avatar; result: ok | not_found | rejected
)
MODERATION_TOTAL = Counter(
    "image_moderation_total",
    "Moderation decisions",
    ["decision"],  # approve | reject
)

# Path prefix -> templated label, to keep label cardinality bounded
_TEMPLATED_PREFIXES = (
    ("/image/get-images/", "/image/get-images/{id}"),
    ("/image/approve/", "/image/approve/{id}"),
    ("/user/get-avatar/", "/user/get-avatar/{username}"),
    ("/user/avatar/", "/user/avatar/{username}"),
)


def _status_class(status: int) -> str:
    if status < 200:
        return "1xx"
    if status < 300:
        return "2xx"
    if status < 400:
        return "3xx"
    if status < 500:
        return "4xx"
    return "5xx"


def _normalize_path(path: str) -> str:
    path = path or "/"
    for prefix, label in _TEMPLATED_PREFIXES:
        if path.startswith(prefix) and len(path) > len(prefix):
            return label
    return path


def record_request(method: str, path: str, status_code: int, latency_seconds: float) -> None:
    path = _normalize_path(path)
    sc = _status_class(status_code)
    REQUEST_COUNT.labels(method=method, path=path, status_class=sc).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(latency_seconds)


def record_upload_success(stored: int) -> None:
    UPLOAD_BATCH_TOTAL.labels(result="success").inc()
    IMAGES_STORED_TOTAL.inc(stored)


def record_upload_failure() -> None:
    UPLOAD_BATCH_TOTAL.labels(result="failure").inc()


def record_served(kind: str, result: str) -> None:
    FILES_SERVED_TOTAL.labels(kind=kind, result=result).inc()


def record_moderation(decision: str) -> None:
    MODERATION_TOTAL.labels(decision=decision).inc()


def get_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
