"""
Cloud Logging utilities for Google API clients.

Package structure:
    cloud_logging_utils.source_location       — SourceLocation (file/line/function of a call site)
    cloud_logging_utils.message               — Message (structured payload, coercion, normalization)
    cloud_logging_utils.structured_formatter  — StructuredFormatter (one JSON line per log call)
    cloud_logging_utils.config                — LoggingSettings (environment + .env)
    cloud_logging_utils.logging_setup         — setup_logger (stdout + rotating file handlers)
    cloud_logging_utils.retry_policy          — RetryPolicy (back-off with a deadline)
    cloud_logging_utils.polling_harness       — PollingHarness (long-running operation polling)
    cloud_logging_utils.client_stub           — ClientStub, CallOptions (googleapiclient request glue)
    cloud_logging_utils.errors                — RestError, DeadlineExceededError
"""
