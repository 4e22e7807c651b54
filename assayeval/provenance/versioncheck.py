"""Check specific required program versions before running the pipeline.

Each external program is described by a ToolRequirement in a fixed
registry. The gate locates binaries, probes their versions and compares
them numerically against a minimum, failing before any stage starts.
"""
import collections
import functools
import re

from assayeval import errors, utils
from assayeval.log import logger
from assayeval.pipeline import config_utils
from assayeval.provenance import do


@functools.total_ordering
class Version(object):
    """Dotted numeric version ordered component by component.

    Missing trailing components count as zero so 1.9 == 1.9.0 and 1.10 > 1.9.
    """
    _pattern = re.compile(r"^\d+(\.\d+)*$")

    def __init__(self, vstr):
        vstr = str(vstr).strip()
        if not self._pattern.match(vstr):
            raise ValueError("Not a dotted numeric version: %r" % vstr)
        self.vstring = vstr
        self.parts = tuple(int(x) for x in vstr.split("."))

    def _key(self, length):
        return self.parts + (0,) * (length - len(self.parts))

    def _cmp_keys(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        n = max(len(self.parts), len(other.parts))
        return self._key(n), other._key(n)

    def __eq__(self, other):
        mine, theirs = self._cmp_keys(other)
        return mine == theirs

    def __lt__(self, other):
        mine, theirs = self._cmp_keys(other)
        return mine < theirs

    def __hash__(self):
        parts = list(self.parts)
        while parts and parts[-1] == 0:
            parts.pop()
        return hash(tuple(parts))

    def __str__(self):
        return self.vstring

    def __repr__(self):
        return "Version(%r)" % self.vstring


ToolRequirement = collections.namedtuple(
    "ToolRequirement", ["name", "probe", "pattern", "min_version", "binary", "mandatory"])

def _rpackage(name, min_version):
    return ToolRequirement(name, ["Rscript", "-e", "cat(as.character(packageVersion('%s')))" % name],
                           r"(\d+(?:\.\d+)*)", min_version, False, False)

_VERSION_RE = r"(\d+(?:\.\d+)*)"

REGISTRY = (
    ToolRequirement("bwa", ["bwa"], r"Version:\s*" + _VERSION_RE, "0.7.17", True, True),
    ToolRequirement("minimap2", ["minimap2", "--version"], r"^" + _VERSION_RE, "2.17", True, True),
    ToolRequirement("samtools", ["samtools", "--version"], r"samtools\s+" + _VERSION_RE, "1.9",
                    True, True),
    ToolRequirement("ssconvert", ["ssconvert", "--version"], r"version\s+'?" + _VERSION_RE,
                    "1.12", True, False),
    ToolRequirement("R", ["Rscript", "--version"], r"version\s+" + _VERSION_RE, "3.5", False, False),
    _rpackage("ggplot2", "3.0"),
    _rpackage("gridExtra", "2.3"),
)

ALIGNERS = ("bwa", "minimap2")

def registry_for(aligner, registry=REGISTRY):
    """Restrict the registry to the aligner used for this run.
    """
    return tuple(t for t in registry if t.name not in ALIGNERS or t.name == aligner)

def parse_version(output, pattern):
    """Extract a Version from probe output, or None if no match is found.
    """
    if isinstance(output, (list, tuple)):
        output = "".join(output)
    m = re.search(pattern, output, re.MULTILINE)
    if not m:
        return None
    try:
        return Version(m.group(1))
    except ValueError:
        return None

def _probe(tool, prog, run_config):
    cmd = [prog] + list(tool.probe[1:])
    result = do.run(cmd, "Checking %s version" % tool.name, check=False, log_error=False,
                    env=config_utils.get_env(run_config))
    return parse_version(result.output, tool.pattern)

def _check_tool(tool, run_config):
    """Check a single requirement, returning the detected Version.
    """
    prog = config_utils.get_program(tool.probe[0], run_config, default=None)
    if prog is None:
        if tool.binary:
            raise errors.MissingToolError("Required program %s not found on the search path"
                                          % tool.probe[0])
        raise errors.VersionUndeterminedError("Cannot check %s: %s not found on the search path"
                                              % (tool.name, tool.probe[0]))
    try:
        version = _probe(tool, prog, run_config)
    except OSError as e:
        raise errors.VersionUndeterminedError("Could not run %s to check its version: %s"
                                              % (tool.name, e))
    if version is None:
        raise errors.VersionUndeterminedError("Could not determine version of %s (%s)"
                                              % (tool.name, prog))
    if version < tool.min_version:
        raise errors.VersionTooLowError("%s version %s found at %s; version %s or better required"
                                        % (tool.name, version, prog, tool.min_version))
    return version

def check(registry, run_config=None):
    """Verify every required program is present and new enough.

    Mandatory tools fail the run; optional ones only log a warning.
    Returns a dictionary of tool name to detected version string.
    """
    logger.info("Testing minimum versions of installed programs")
    found = collections.OrderedDict()
    for tool in registry:
        try:
            version = _check_tool(tool, run_config)
        except errors.PipelineError as e:
            if tool.mandatory:
                raise
            logger.warn("Optional program check failed: %s" % e)
            continue
        logger.debug("%s version %s" % (tool.name, version))
        found[tool.name] = str(version)
    return found
