# ============================================================================
# WORK FUNCTIONS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Advertised broker capabilities
# PURPOSE: Name and bind the functions a worker advertises
# CREATED: 18 OCT 2026
# ============================================================================
"""
Work Functions

A WorkFunction is what the broker calls back into when a client submits
"build:<job>:scheduler". It binds the function name to the job, node and
broker connection it was derived from. Executing the build is the job of
the executor named by `executor_name`; this module only builds the binding.

Identity is the function name alone, so two passes over an unchanged
catalog produce equal registration sets even though the bound objects are
fresh instances.
"""

from dataclasses import dataclass, field
from typing import Any

from core.models import BuildJob, ExecutionNode

# Broker protocol surface: clients address jobs with exactly this format
FUNCTION_PREFIX = "build"
FUNCTION_SUFFIX = "scheduler"
FUNCTION_SEPARATOR = ":"

DEFAULT_EXECUTOR = "start_build"


def build_function_name(job_name: str) -> str:
    """
    Function name advertised for a job.

    Depends on the job name only; node labels and the job's label
    expression do not change it.
    """
    return FUNCTION_SEPARATOR.join((FUNCTION_PREFIX, job_name, FUNCTION_SUFFIX))


@dataclass(frozen=True)
class WorkFunction:
    """
    Function bound to (job, node, connection).

    Equality and hashing use `function_name` only.
    """
    function_name: str
    executor_name: str = field(compare=False)
    job: BuildJob = field(compare=False, repr=False)
    node: ExecutionNode = field(compare=False, repr=False)
    master_name: str = field(compare=False)
    connection: Any = field(compare=False, repr=False)


class FunctionFactory:
    """
    Creates WorkFunction bindings.

    Subclass to attach extra executor state; the reconciler only relies on
    the returned object's `function_name`.
    """

    def create(
        self,
        function_name: str,
        executor_name: str,
        job: BuildJob,
        node: ExecutionNode,
        master_name: str,
        connection: Any,
    ) -> WorkFunction:
        return WorkFunction(
            function_name=function_name,
            executor_name=executor_name,
            job=job,
            node=node,
            master_name=master_name,
            connection=connection,
        )


__all__ = [
    "FUNCTION_PREFIX",
    "FUNCTION_SUFFIX",
    "DEFAULT_EXECUTOR",
    "build_function_name",
    "WorkFunction",
    "FunctionFactory",
]
