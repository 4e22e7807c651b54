"""Scoring and run configuration, loaded once and passed to every stage.

Configuration values are immutable namedtuples. Scoring settings start from
package defaults, are overridden by an optional YAML file and then by
command line flags.
"""
import collections
import math
import os

import toolz as tz
import yaml

from assayeval import errors, utils


class CmdNotFound(errors.MissingToolError):
    pass

# ## Scoring configuration

SCORING_FIELDS = ["quality_cutoff", "depth_cutoff", "read_length_cutoff",
                  "expected_coverage", "expected_identity", "expected_baseq", "expected_mapq",
                  "coverage_weight", "identity_weight", "baseq_weight", "mapq_weight"]

ScoringConfig = collections.namedtuple("ScoringConfig", SCORING_FIELDS)

DEFAULT_SCORING = ScoringConfig(quality_cutoff=0.8, depth_cutoff=20, read_length_cutoff=100,
                                expected_coverage=0.95, expected_identity=0.99,
                                expected_baseq=30, expected_mapq=50,
                                coverage_weight=0.25, identity_weight=0.25,
                                baseq_weight=0.25, mapq_weight=0.25)

# Command line flag for each scoring field; also the stats collector arguments
SCORING_FLAGS = collections.OrderedDict([
    ("quality_cutoff", "q_cutoff"),
    ("depth_cutoff", "depth_cutoff"),
    ("read_length_cutoff", "len_cutoff"),
    ("expected_coverage", "expectedCoverage"),
    ("expected_identity", "expectedIdentity"),
    ("expected_baseq", "expectedBaseQ"),
    ("expected_mapq", "expectedMapQ"),
    ("coverage_weight", "coverageWeight"),
    ("identity_weight", "identityWeight"),
    ("baseq_weight", "baseqWeight"),
    ("mapq_weight", "mapqWeight")])

RATIO_FIELDS = ["quality_cutoff", "expected_coverage", "expected_identity"]
COUNT_FIELDS = ["depth_cutoff", "read_length_cutoff", "expected_baseq", "expected_mapq"]
WEIGHT_FIELDS = ["coverage_weight", "identity_weight", "baseq_weight", "mapq_weight"]

def _flag(field):
    return "--%s" % SCORING_FLAGS[field]

def _is_number(x):
    return isinstance(x, (int, float)) and not isinstance(x, bool)

def validate(config):
    """Check a ScoringConfig, raising ConfigError on the first problem found.

    Ratios must be in (0,1], counts positive integers and each weight in
    [0,1], checked in coverage, identity, baseq, mapq order. The weights
    must then sum to exactly 1.
    """
    for field in RATIO_FIELDS:
        val = getattr(config, field)
        if not _is_number(val) or not 0 < val <= 1:
            raise errors.ConfigError(_flag(field), "expected a value in (0,1], got %r" % (val,))
    for field in COUNT_FIELDS:
        val = getattr(config, field)
        if not _is_number(val) or int(val) != val or val <= 0:
            raise errors.ConfigError(_flag(field), "expected a positive integer, got %r" % (val,))
    for field in WEIGHT_FIELDS:
        val = getattr(config, field)
        if not _is_number(val) or not 0 <= val <= 1:
            raise errors.ConfigError(_flag(field), "expected a weight in [0,1], got %r" % (val,))
    total = math.fsum(getattr(config, field) for field in WEIGHT_FIELDS)
    if total != 1.0:
        raise errors.ConfigError("weights", "coverage, identity, baseq and mapq weights "
                                 "must sum to 1, got %s" % total)
    return config

def _coerce(field, val):
    try:
        if field in COUNT_FIELDS:
            fval = float(val)
            return int(fval) if fval == int(fval) else fval
        return float(val)
    except (TypeError, ValueError, OverflowError):
        raise errors.ConfigError(_flag(field), "not a number: %r" % (val,))

def load_scoring_file(config_file):
    """Read scoring overrides from the `scoring` section of a YAML file.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    if not isinstance(config, dict):
        raise errors.ConfigError(config_file, "expected a YAML mapping")
    overrides = tz.get_in(["scoring"], config, {}) or {}
    unknown = sorted(set(overrides) - set(SCORING_FIELDS))
    if unknown:
        raise errors.ConfigError(config_file, "unknown scoring keys: %s" % ", ".join(unknown))
    return overrides

def make_scoring(overrides=None, config_file=None):
    """Build a ScoringConfig from defaults, a YAML file and explicit overrides.

    Overrides set to None are ignored, so unset command line flags leave the
    file or default values in place.
    """
    values = DEFAULT_SCORING._asdict()
    if config_file:
        values.update(load_scoring_file(config_file))
    values.update(tz.valfilter(lambda x: x is not None, overrides or {}))
    values = {k: _coerce(k, v) for k, v in values.items()}
    return ScoringConfig(**values)

def scoring_to_args(config):
    """Serialize scoring configuration as command line flags for collaborators.
    """
    out = []
    for field, flag in SCORING_FLAGS.items():
        out += ["--%s" % flag, str(getattr(config, field))]
    return out

# ## Run configuration

RunConfig = collections.namedtuple(
    "RunConfig", ["ref_file", "sample_dir", "manifest_file", "out_dir", "prefix",
                  "cores", "mode", "aligner", "align_options", "platform",
                  "force", "strict", "debug", "quiet", "tmp_dir", "tool_path",
                  "stats_program", "report_program", "scoring"])

RUN_DEFAULTS = {"out_dir": "assayeval_out", "prefix": "assay", "cores": 1, "mode": "PE",
                "aligner": "bwa", "align_options": (), "platform": "illumina",
                "force": False, "strict": False, "debug": False, "quiet": False,
                "tmp_dir": None, "tool_path": (),
                "stats_program": "assayeval-stats", "report_program": "assayeval-report",
                "scoring": DEFAULT_SCORING}

def make_run_config(ref_file, sample_dir, manifest_file, **kwargs):
    values = dict(RUN_DEFAULTS)
    values.update(kwargs)
    values["align_options"] = tuple(values["align_options"] or ())
    values["tool_path"] = tuple(values["tool_path"] or ())
    return RunConfig(ref_file=ref_file, sample_dir=sample_dir, manifest_file=manifest_file,
                     **values)

def get_dirs(run_config):
    return {"mapping": os.path.join(run_config.out_dir, "mapping"),
            "stats": os.path.join(run_config.out_dir, "stats"),
            "reports": os.path.join(run_config.out_dir, "reports")}

# ## Retrieval functions

def get_env(run_config):
    """Environment for external programs, with the configured tool path first.
    """
    env = os.environ.copy()
    tool_path = list(run_config.tool_path) if run_config else []
    if tool_path:
        env["PATH"] = os.pathsep.join(tool_path + [env.get("PATH", "")])
    return env

_MISSING = object()

def get_program(name, run_config, default=_MISSING):
    """Retrieve the full path to a program from the tool path or PATH.
    """
    tool_path = run_config.tool_path if run_config else ()
    prog = utils.which(name, tool_path)
    if prog is None:
        if default is not _MISSING:
            return default
        raise CmdNotFound("Required program %s not found on the search path: %s"
                          % (name, os.pathsep.join(list(tool_path) + [os.environ.get("PATH", "")])))
    return prog
