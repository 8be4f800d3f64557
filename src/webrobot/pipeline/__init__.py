"""Pipeline engine — guarded step sequences and the sequential work queue.

Modules:

* ``models`` — ``Step``, ``ResultRegister``, ``ResultView`` and ``SKIPPED``.
* ``executor`` — ``StepPipeline`` / ``run_pipeline`` with error annotation.
* ``queue`` — ``SequentialQueue`` / ``for_each_sequential``.
"""

from webrobot.pipeline.executor import (
    PipelineOptions,
    StepFailure,
    StepPipeline,
    fail,
    maybe_await,
    run_pipeline,
)
from webrobot.pipeline.models import SKIPPED, ResultRegister, ResultView, Step
from webrobot.pipeline.queue import SequentialQueue, for_each_sequential

__all__ = [
    "PipelineOptions",
    "ResultRegister",
    "ResultView",
    "SKIPPED",
    "SequentialQueue",
    "Step",
    "StepFailure",
    "StepPipeline",
    "fail",
    "for_each_sequential",
    "maybe_await",
    "run_pipeline",
]
