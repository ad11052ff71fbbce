from prometheus_client import Counter, Histogram

# Labels stay low-cardinality: operation names, never namespaces or keys.
REQUESTS = Counter(
    "mds_client_requests_total",
    "Total storage service requests",
    ["operation", "status"],
)

LATENCY = Histogram(
    "mds_client_request_duration_seconds",
    "Storage service request latency in seconds",
    ["operation"],
)

TRANSPORT_ERROR_STATUS = "transport_error"
