"""Run tasks in parallel on a single machine using multiple cores.
"""
import multiprocessing

import joblib

from assayeval.log import logger


def available_cores():
    try:
        return multiprocessing.cpu_count()
    except NotImplementedError:
        return 1

def get_cores(requested, available=None):
    """Resolve a requested core count against the machine.

    0 means use everything available, negative values mean a single core and
    anything above the machine size is clamped to it.
    """
    if available is None:
        available = available_cores()
    requested = int(requested or 0)
    if requested == 0:
        return available
    if requested < 0:
        return 1
    return min(requested, available)

def run_multicore(fn, items, cores, backend="threading"):
    """Run the function on each item with a fixed size worker pool.

    Blocks until every submitted item finishes and returns results in the
    order of `items`, independent of completion order. The threading backend
    suits work that waits on external processes.
    """
    items = [x for x in items if x is not None]
    if len(items) == 0:
        return []
    num_jobs = max(1, min(cores, len(items)))
    logger.info("Running %s on %s item(s) with %s worker(s)"
                % (getattr(fn, "__name__", fn), len(items), num_jobs))
    return list(joblib.Parallel(num_jobs, batch_size=1, backend=backend)(
        joblib.delayed(fn)(*x) for x in items))
