"""Main entry point for the assay evaluation pipeline.

Validates inputs and installed programs, then runs alignment, stats
collection, aggregation and reporting in order. Every stage skips samples
whose outputs already exist, so rerunning a finished or interrupted analysis
only does the remaining work.
"""
import argparse
import os
import sys

from assayeval import errors, log, utils
from assayeval.distributed import clargs
from assayeval.log import logger
from assayeval.pipeline import alignment, config_utils, qcsummary, run_info, version
from assayeval.provenance import programs, versioncheck
from assayeval.qc import report, stats

EXIT_FAILURE = 2

def run_main(run_config):
    """Run the full pipeline for an already built RunConfig.
    """
    logger.info("assayeval %s; output directory %s" % (version.__version__, run_config.out_dir))
    config_utils.validate(run_config.scoring)
    manifest = run_info.parse(run_config.sample_dir, run_config.manifest_file, run_config.mode,
                              run_config)
    versions = versioncheck.check(versioncheck.registry_for(run_config.aligner), run_config)
    for program in [run_config.stats_program, run_config.report_program]:
        config_utils.get_program(program, run_config)
    programs.write_versions(versions, run_config)

    alignment.align_all(manifest.samples, run_config)
    stats.run_all(manifest.samples, run_config)
    merged = qcsummary.aggregate(manifest.samples, run_config)
    report.run(merged, run_config)
    logger.info("Finished; merged report in %s" % merged.mapping_stats)
    return merged

def parse_cl_args(in_args):
    """Parse input commandline arguments.
    """
    description = "Evaluate assay performance from sequencing reads mapped to a reference."
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--ref", required=True, help="Reference FASTA file")
    parser.add_argument("--indir", required=True, help="Directory containing the read files")
    parser.add_argument("--samples", required=True,
                        help="Sample manifest; tab delimited text or a spreadsheet")
    parser.add_argument("--outdir", default=os.path.join(os.getcwd(), "assayeval_out"),
                        help="Output directory. Defaults to ./assayeval_out")
    parser.add_argument("--prefix", default="assay", help="Prefix for run level output files")
    parser.add_argument("--cpus", type=int, default=1,
                        help="Number of cores to use; 0 uses all available")
    parser.add_argument("--mode", choices=["PE", "SE"], default="PE",
                        help="Paired-end or single-end reads")
    parser.add_argument("--config", help="YAML file with a scoring section overriding defaults")
    scoring = parser.add_argument_group("scoring")
    for field, flag in config_utils.SCORING_FLAGS.items():
        ftype = int if field in config_utils.COUNT_FIELDS else float
        scoring.add_argument("--%s" % flag, dest=flag, type=ftype, default=None,
                             help="Default: %s" % getattr(config_utils.DEFAULT_SCORING, field))
    parser.add_argument("--aligner", choices=versioncheck.ALIGNERS, default="bwa",
                        help="Aligner to map reads with")
    parser.add_argument("--align_options", default="",
                        help="Additional options passed to the aligner, as one quoted string")
    parser.add_argument("--force", action="store_true", default=False,
                        help="Redo every step, ignoring existing outputs")
    parser.add_argument("--strict", action="store_true", default=False,
                        help="Fail the run if stats collection fails for any sample")
    parser.add_argument("--tmpdir", help="Directory for temporary files")
    parser.add_argument("--toolpath", action="append", default=[],
                        help="Directory searched for external programs before PATH. "
                             "Can be specified multiple times.")
    parser.add_argument("--stats_program", default="assayeval-stats",
                        help=argparse.SUPPRESS)
    parser.add_argument("--report_program", default="assayeval-report",
                        help=argparse.SUPPRESS)
    parser.add_argument("--debug", action="store_true", default=False,
                        help="Write debugging information to the log")
    parser.add_argument("--quite", "--quiet", dest="quiet", action="store_true", default=False,
                        help="Do not print log messages to the console")
    parser.add_argument("-v", "--version", action="version",
                        version="%(prog)s " + version.__version__)
    return parser.parse_args(in_args)

def main(in_args=None):
    args = parse_cl_args(sys.argv[1:] if in_args is None else in_args)
    try:
        out_dir = utils.safe_makedir(utils.get_abspath(args.outdir))
        if not os.path.isdir(out_dir):
            raise NotADirectoryError("Output directory %s is not a directory" % out_dir)
        handler = log.setup_logging(out_dir, args.prefix, args.debug, args.quiet)
    except (OSError, IOError) as e:
        sys.stderr.write("Cannot write to output directory %s: %s\n" % (args.outdir, e))
        return EXIT_FAILURE
    try:
        run_main(clargs.to_run_config(args))
    except errors.PipelineError as e:
        logger.error("%s: %s" % (e.__class__.__name__, e))
        return EXIT_FAILURE
    except Exception:
        logger.exception("Unexpected error")
        return EXIT_FAILURE
    finally:
        log.teardown_logging(handler)
    return 0

if __name__ == "__main__":
    sys.exit(main())
