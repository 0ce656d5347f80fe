# Path: otpgate/shared/utilities/types.py
from typing import Dict, Any
from uuid import UUID

# Type for trace IDs (UUID for distributed tracing)
TraceId = UUID

# Type for error details (flexible key-value pairs)
ErrorDetails = Dict[str, Any]

# Type for language codes (e.g., "en")
LanguageCode = str
