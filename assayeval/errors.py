"""Exceptions raised while validating inputs and running pipeline stages.

Pre-flight problems (configuration, manifest, installed tools) are raised
before any work starts. Stage problems stop the run after the failing stage.
"""


class PipelineError(Exception):
    pass

# ## Pre-flight

class ConfigError(PipelineError, ValueError):
    """Scoring configuration value out of range or weights not summing to 1.
    """
    def __init__(self, field, msg):
        self.field = field
        super(ConfigError, self).__init__("%s: %s" % (field, msg))

class ManifestFormatError(PipelineError, ValueError):
    pass

FormatError = ManifestFormatError

class NotFoundError(PipelineError, IOError):
    pass

class FormatTypeError(PipelineError, ValueError):
    pass

class PairingError(PipelineError, ValueError):
    pass

class MissingToolError(PipelineError, OSError):
    pass

class VersionUndeterminedError(PipelineError, OSError):
    pass

class VersionTooLowError(PipelineError, OSError):
    pass

# ## Stages

class AlignmentError(PipelineError):
    pass

class StatsError(PipelineError):
    def __init__(self, failed):
        self.failed = list(failed)
        super(StatsError, self).__init__(
            "Stats collection failed for %s sample(s): %s"
            % (len(self.failed), ", ".join(x.sample for x in self.failed)))

class AggregateError(PipelineError):
    def __init__(self, sample, missing):
        self.sample = sample
        self.missing = missing
        super(AggregateError, self).__init__(
            "Missing stats output for sample %s: %s" % (sample, missing))

class ReportError(PipelineError):
    pass
