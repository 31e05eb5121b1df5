"""telemetry: logging setup and JSONL task events."""
from .logger import TaskEventLogger  # noqa: F401
from .setup import setup_logging  # noqa: F401
