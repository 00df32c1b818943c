from vault.infrastructure.scheduler.jobs import sweep_one_time_codes
from vault.infrastructure.scheduler.main import (
    initialize_scheduler,
    schedule_sweep_one_time_codes_job,
    scheduler,
)

__all__ = [
    "scheduler",
    "sweep_one_time_codes",
    "schedule_sweep_one_time_codes_job",
    "initialize_scheduler",
]
