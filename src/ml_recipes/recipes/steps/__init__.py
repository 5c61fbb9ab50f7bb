from __future__ import annotations

from .base import Deferred, Step, rand_id, tune
from .date import (
    StepDate,
    apply_date_step,
    bind_date_step,
    describe_date_step,
    make_date_step,
    step_date,
)

__all__ = [
    "Deferred",
    "Step",
    "StepDate",
    "apply_date_step",
    "bind_date_step",
    "describe_date_step",
    "make_date_step",
    "rand_id",
    "step_date",
    "tune",
]
