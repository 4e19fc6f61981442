"""Canonical logging field names for cross-component consistency.

These constants define a stable key set for structured logs and context
propagation across the request path and the worker loop.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Envelope/correlation fields.
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
PRINCIPAL = "principal"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"

# Task delivery fields.
QUEUE = "queue"
TASK_KIND = "task_kind"
ATTEMPT = "attempt"
OUTCOME = "outcome"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
