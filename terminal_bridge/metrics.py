from __future__ import annotations

from threading import Lock

_lock = Lock()
_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf"))


def _empty() -> dict:
    return {
        "requests_total": 0,
        "checkouts_total": 0,
        "failures": {},
        # simple histogram buckets in seconds
        "latency_buckets": {b: 0 for b in _BUCKETS},
        "latency_sum": 0.0,
        "latency_count": 0,
    }


_metrics = _empty()


def reset() -> None:
    global _metrics
    with _lock:
        _metrics = _empty()


def record_request(duration: float, failed_step: str | None = None, ok: bool = False) -> None:
    with _lock:
        _metrics["requests_total"] += 1
        if ok:
            _metrics["checkouts_total"] += 1
        if failed_step:
            _metrics["failures"][failed_step] = _metrics["failures"].get(failed_step, 0) + 1
        _metrics["latency_sum"] += duration
        _metrics["latency_count"] += 1
        for b in _BUCKETS:
            if duration <= b:
                _metrics["latency_buckets"][b] += 1
                break


def prometheus_exposition() -> str:
    with _lock:
        snap = {**_metrics, "failures": dict(_metrics["failures"]), "latency_buckets": dict(_metrics["latency_buckets"])}
    lines = [
        "# HELP bridge_requests_total Checkout requests handled",
        "# TYPE bridge_requests_total counter",
        f"bridge_requests_total {snap['requests_total']}",
        "# HELP bridge_checkouts_created_total Terminal checkouts created",
        "# TYPE bridge_checkouts_created_total counter",
        f"bridge_checkouts_created_total {snap['checkouts_total']}",
        "# HELP bridge_failures_total Failed checkout requests by step",
        "# TYPE bridge_failures_total counter",
    ]
    for step in sorted(snap["failures"]):
        lines.append(f"bridge_failures_total{{step=\"{step}\"}} {snap['failures'][step]}")
    lines += [
        "# HELP bridge_request_latency_seconds Checkout request latency",
        "# TYPE bridge_request_latency_seconds histogram",
    ]
    cumulative = 0
    for b in _BUCKETS:
        cumulative += snap["latency_buckets"][b]
        bucket_label = (
            "+Inf" if b == float("inf") else f"{b:.2f}".rstrip("0").rstrip(".")
        )
        lines.append(f"bridge_request_latency_seconds_bucket{{le=\"{bucket_label}\"}} {cumulative}")
    lines.append(f"bridge_request_latency_seconds_sum {snap['latency_sum']}")
    lines.append(f"bridge_request_latency_seconds_count {snap['latency_count']}")
    return "\n".join(lines) + "\n"
