"""Shared error code constants.

Stable, machine-readable codes for local validation, transport, and store
failures. Codes are attached to ``ErrorDetail`` values and drive CLI exit
status and log fields.
"""

# Validation (local, pre-transmission)
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_JSON = "INVALID_JSON"
INVALID_RECORD_ID = "INVALID_RECORD_ID"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
MISSING_PREDICATES = "MISSING_PREDICATES"
EMPTY_PAYLOAD = "EMPTY_PAYLOAD"

# Local resources
FILE_READ_FAILED = "FILE_READ_FAILED"

# Dependency / transport
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
HTTP_STATUS = "HTTP_STATUS"

# Remote store
REMOTE_REJECTED = "REMOTE_REJECTED"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
