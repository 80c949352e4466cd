from .dsl import job
from .config import job_from_config
from .model import Job, PathEntry
from .runner import BuildOrchestrator, RunOutcome, RunSuccess, RunFailure

__all__ = [
    "job",
    "job_from_config",
    "Job",
    "PathEntry",
    "BuildOrchestrator",
    "RunOutcome",
    "RunSuccess",
    "RunFailure",
]
