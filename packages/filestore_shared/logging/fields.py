"""Canonical logging field names for filestore components.

Keeping names centralized prevents drift between the SDK, the workflows, and
the CLI actor.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Envelope fields.
OPERATION = "operation"
TYPE_CLASSIFIER = "type_classifier"
PREDICATE_COUNT = "predicate_count"
STATUS_CODE = "status_code"

# Workflow fields.
WORKFLOW = "workflow"
TARGET_ID = "target_id"
GENERATION = "generation"
ERROR_CATEGORY = "error_category"
ERROR_CODE = "error_code"
SUCCESS = "success"

# Event names.
ENVELOPE_SENT_EVENT = "envelope_sent"
ENVELOPE_REJECTED_EVENT = "envelope_rejected"
FINGERPRINT_SIMULATED_EVENT = "fingerprint_simulated"
EGRESS_PROVIDER_FAILED_EVENT = "egress_provider_failed"
EGRESS_DEFAULT_USED_EVENT = "egress_default_used"
SELECTION_CHANGED_EVENT = "selection_changed"
STALE_RESULT_DROPPED_EVENT = "stale_result_dropped"
WORKFLOW_FAILED_EVENT = "workflow_failed"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

# Per-call ``extra=`` keys copied onto formatted output when present.
RECORD_FIELDS = (
    EVENT,
    OPERATION,
    TYPE_CLASSIFIER,
    PREDICATE_COUNT,
    STATUS_CODE,
    TARGET_ID,
    GENERATION,
    ERROR_CATEGORY,
    ERROR_CODE,
    SUCCESS,
)
