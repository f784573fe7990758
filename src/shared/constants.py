"""Shared constants used across the service."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Port numbers
ANALYZER_PORT: int = 3000

# Database settings
DB_BUSY_TIMEOUT_MS: int = 30000

# Service names
ANALYZER_SERVICE_NAME: str = "req-analyzer"

# Upstream text generation
DEFAULT_MODEL_ID: str = "deepseek/deepseek-chat"
OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
UPSTREAM_TEMPERATURE: float = 0.2
UPSTREAM_REFERER: str = "http://localhost"
UPSTREAM_TITLE: str = "Req Analyzer"

# Advisory cardinality limits, sent to the model in the system prompt only
MAX_PROCESSES: int = 6
MAX_SUBPROCESSES_PER_PROCESS: int = 6
MAX_USE_CASES_PER_SUBPROCESS: int = 8

# Placeholder names substituted for missing ones
DEFAULT_PROCESS_NAME: str = "Process"
DEFAULT_SUBPROCESS_NAME: str = "Subprocess"
DEFAULT_USE_CASE_NAME: str = "Use case"

# Use case kind bounds (1=Functional, 2=NonFunctional, 3=System)
MIN_USE_CASE_KIND: int = 1
MAX_USE_CASE_KIND: int = 3

SAMPLE_SPEC_TEXT: str = "Sample specification"
