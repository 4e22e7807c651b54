"""Parsing of command line arguments into the run configuration.
"""
import os
import shlex

from assayeval import utils
from assayeval.distributed import multi
from assayeval.pipeline import config_utils


def to_run_config(args):
    """Convert parsed arguments into an immutable RunConfig.
    """
    overrides = {field: getattr(args, flag, None)
                 for field, flag in config_utils.SCORING_FLAGS.items()}
    scoring = config_utils.make_scoring(overrides, args.config)
    return config_utils.make_run_config(
        utils.get_abspath(args.ref), utils.get_abspath(args.indir), utils.get_abspath(args.samples),
        out_dir=utils.get_abspath(args.outdir), prefix=args.prefix,
        cores=multi.get_cores(args.cpus), mode=args.mode, aligner=args.aligner,
        align_options=shlex.split(args.align_options or ""),
        force=args.force, strict=args.strict, debug=args.debug, quiet=args.quiet,
        tmp_dir=utils.get_abspath(args.tmpdir) if args.tmpdir else None,
        tool_path=[os.path.abspath(x) for x in args.toolpath],
        stats_program=args.stats_program, report_program=args.report_program,
        scoring=scoring)
