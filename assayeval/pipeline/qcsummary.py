"""Merge per-sample quality metrics into run level summary files.

Samples are merged in manifest order, independent of the order in which
parallel stats collection finished. The first sample contributes its header
line; header lines from later samples are dropped.
"""
import collections
import os

from assayeval import errors
from assayeval.distributed.transaction import file_transaction
from assayeval.log import logger
from assayeval.pipeline import config_utils
from assayeval.qc import stats

HEADER_TOKEN = "SampleID"

MergedReport = collections.namedtuple("MergedReport", ["mapping_stats", "run_stats", "report"])

def get_merged_files(run_config):
    stats_dir = config_utils.get_dirs(run_config)["stats"]
    prefix = os.path.join(stats_dir, run_config.prefix)
    return MergedReport(prefix + ".mapping_stats.txt", prefix + ".run_stats.txt",
                        prefix + ".report.txt")

def _sample_files(samples, run_config):
    """Retrieve per-sample stats files, failing on any that are missing.
    """
    out = []
    for sample in samples:
        sample_files = stats.get_stats_files(sample.id, run_config)
        for f in sample_files:
            if not os.path.exists(f):
                raise errors.AggregateError(sample.id, f)
        out.append(sample_files)
    return out

def merge_files(in_files, out_file, header_token=HEADER_TOKEN):
    """Concatenate files, keeping header lines only from the first.
    """
    with open(out_file, "w") as out_handle:
        for i, in_file in enumerate(in_files):
            with open(in_file) as in_handle:
                for line in in_handle:
                    if i > 0 and header_token in line:
                        continue
                    if line and not line.endswith("\n"):
                        line += "\n"
                    out_handle.write(line)
    return out_file

def aggregate(samples, run_config):
    """Merge mapping and run stats for samples in manifest order.
    """
    if not samples:
        raise errors.AggregateError("-", "no samples to aggregate")
    merged = get_merged_files(run_config)
    sample_files = _sample_files(samples, run_config)
    logger.info("Merging stats for %s samples into %s" % (len(samples), merged.mapping_stats))
    with file_transaction(run_config, [merged.mapping_stats, merged.run_stats]) as (tx_stats, tx_run):
        merge_files([x[0] for x in sample_files], tx_stats)
        merge_files([x[1] for x in sample_files], tx_run)
    return merged
