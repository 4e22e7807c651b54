"""Render the final assay report with the external report program.
"""
import os
import subprocess

from assayeval import errors, utils
from assayeval.log import logger
from assayeval.pipeline import config_utils
from assayeval.provenance import do


def report_cl(merged, run_config, program, out_dir):
    scoring = run_config.scoring
    return [program, "--mapping_stats", merged.mapping_stats, "--run_stats", merged.run_stats,
            "--report", merged.report, "--outdir", out_dir, "--prefix", run_config.prefix,
            "--q_cutoff", str(scoring.quality_cutoff),
            "--depth_cutoff", str(scoring.depth_cutoff),
            "--len_cutoff", str(scoring.read_length_cutoff)]

def run(merged, run_config):
    """Run the report renderer once on the merged stats.

    Output is captured in reports/log.txt. A failure raises ReportError
    and leaves every file produced by earlier stages in place.
    """
    out_dir = utils.safe_makedir(config_utils.get_dirs(run_config)["reports"])
    log_file = os.path.join(out_dir, "log.txt")
    program = config_utils.get_program(run_config.report_program, run_config)
    logger.info("Rendering report into %s" % out_dir)
    open(log_file, "w").close()
    try:
        do.run(report_cl(merged, run_config, program, out_dir), "Rendering assay report",
               env=config_utils.get_env(run_config), log_file=log_file)
    except (subprocess.CalledProcessError, OSError) as e:
        raise errors.ReportError("Report rendering failed, see %s: %s" % (log_file, e))
    return out_dir
