"""Per-sample mapping metrics from the external stats collector.

Samples are processed by a fixed size worker pool. Each unit of work runs
the collector on one BAM file and reports its own result; the stage waits
for every unit before returning.
"""
import collections
import os

from assayeval import errors, utils
from assayeval.distributed import multi
from assayeval.distributed.transaction import file_transaction
from assayeval.log import logger
from assayeval.pipeline import alignment, config_utils
from assayeval.provenance import do

StatsResult = collections.namedtuple("StatsResult", ["sample", "ok", "returncode", "output",
                                                     "skipped"])

def get_stats_files(sample_id, run_config):
    """Per-sample mapping stats and run stats locations.
    """
    stats_dir = config_utils.get_dirs(run_config)["stats"]
    return (os.path.join(stats_dir, "%s.mapping_stats.txt" % sample_id),
            os.path.join(stats_dir, "%s.run_stats.txt" % sample_id))

def has_stats(sample, run_config):
    return all(utils.file_exists(f) for f in get_stats_files(sample.id, run_config))

def stats_cl(sample, bam_file, stats_file, run_stats_file, run_config, program):
    """Command line for the stats collector, carrying the full scoring configuration.
    """
    return ([program, "--bam", bam_file, "--ref", run_config.ref_file, "--sample", sample.id,
             "--out", stats_file, "--run_stats", run_stats_file] +
            config_utils.scoring_to_args(run_config.scoring))

def run(sample, run_config, program=None):
    """Collect stats for a single sample, returning a StatsResult.

    Failures of the external program are reported in the result rather than
    raised, so one bad sample does not take down other workers.
    """
    stats_file, run_stats_file = get_stats_files(sample.id, run_config)
    bam_file, _ = alignment.get_align_files(sample, run_config)
    program = program or config_utils.get_program(run_config.stats_program, run_config)
    result = None
    try:
        with file_transaction(run_config, [stats_file, run_stats_file]) as (tx_stats, tx_run_stats):
            cmd = stats_cl(sample, bam_file, tx_stats, tx_run_stats, run_config, program)
            result = do.run(cmd, "Collecting mapping stats: %s" % sample.id, check=False,
                            env=config_utils.get_env(run_config))
            if result.returncode != 0:
                # leave no partial outputs for the next run to pick up
                utils.remove_safe(tx_stats)
                utils.remove_safe(tx_run_stats)
    except (IOError, OSError) as e:
        return StatsResult(sample.id, False, None, [str(e)], False)
    ok = result.returncode == 0 and has_stats(sample, run_config)
    return StatsResult(sample.id, ok, result.returncode, result.output, False)

def run_all(samples, run_config, cores=None):
    """Run stats collection on all samples without existing outputs.

    Returns one StatsResult per sample in the input order. Failed units are
    logged; with `run_config.strict` they raise StatsError once every unit
    has finished.
    """
    cores = multi.get_cores(run_config.cores if cores is None else cores)
    utils.safe_makedir(config_utils.get_dirs(run_config)["stats"])
    todo = []
    out = collections.OrderedDict()
    for sample in samples:
        if not run_config.force and has_stats(sample, run_config):
            logger.info("Skipping stats for %s; found existing output" % sample.id)
            out[sample.id] = StatsResult(sample.id, True, 0, [], True)
        else:
            todo.append(sample)
    if todo:
        program = config_utils.get_program(run_config.stats_program, run_config)
        results = multi.run_multicore(run, [(s, run_config, program) for s in todo], cores)
        for r in results:
            out[r.sample] = r
    results = [out[s.id] for s in samples]
    failed = [r for r in results if not r.ok]
    for r in failed:
        logger.warn("Stats collection failed for %s (exit code %s): %s"
                    % (r.sample, r.returncode, "".join(r.output[-5:]).strip()))
    if failed and run_config.strict:
        raise errors.StatsError(failed)
    return results
