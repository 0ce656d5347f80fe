import uuid

from otpgate.shared.utilities.types import TraceId


# Generate unique trace ID for distributed tracing
def generate_trace_id() -> TraceId:
    return uuid.uuid4()

# Mask sensitive data, keeping the last four characters
def sanitize_data(data: str) -> str:
    if len(data) > 4:
        return "****" + data[-4:]
    return "****"
