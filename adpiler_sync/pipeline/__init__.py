"""
Pipeline package — configuration, orchestration, card comments.
"""

from adpiler_sync.pipeline.config import ConfigError, PublishConfig
from adpiler_sync.pipeline.orchestrator import (
    JobState,
    Orchestrator,
    PublishJobError,
    PublishPlan,
    PublishResult,
)

__all__ = [
    "ConfigError",
    "JobState",
    "Orchestrator",
    "PublishConfig",
    "PublishJobError",
    "PublishPlan",
    "PublishResult",
]
