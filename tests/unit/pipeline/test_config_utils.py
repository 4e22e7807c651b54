import os

import pytest

from assayeval import errors
from assayeval.pipeline import config_utils
from assayeval.pipeline.config_utils import DEFAULT_SCORING
from tests.conftest import write_file


def _weights(coverage, identity, baseq, mapq):
    return DEFAULT_SCORING._replace(coverage_weight=coverage, identity_weight=identity,
                                    baseq_weight=baseq, mapq_weight=mapq)


class TestValidate(object):

    def test_defaults_are_valid(self):
        assert config_utils.validate(DEFAULT_SCORING) == DEFAULT_SCORING

    @pytest.mark.parametrize("weights", [
        (0.25, 0.25, 0.25, 0.25),
        (1.0, 0.0, 0.0, 0.0),
        (0.1, 0.2, 0.3, 0.4),
    ])
    def test_weights_summing_to_one(self, weights):
        config_utils.validate(_weights(*weights))

    def test_weights_not_summing_to_one(self):
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.validate(_weights(0.3, 0.3, 0.3, 0.3))
        assert excinfo.value.field == "weights"

    def test_reports_first_bad_weight_in_order(self):
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.validate(_weights(1.5, -0.1, 0.0, 0.0))
        assert excinfo.value.field == "--coverageWeight"

    def test_identity_checked_after_coverage(self):
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.validate(_weights(0.5, 1.5, 0.0, 0.0))
        assert excinfo.value.field == "--identityWeight"

    @pytest.mark.parametrize(("field", "val", "flag"), [
        ("quality_cutoff", 0.0, "--q_cutoff"),
        ("quality_cutoff", 1.2, "--q_cutoff"),
        ("expected_identity", -0.5, "--expectedIdentity"),
        ("depth_cutoff", 0, "--depth_cutoff"),
        ("read_length_cutoff", 10.5, "--len_cutoff"),
        ("expected_mapq", -3, "--expectedMapQ"),
    ])
    def test_out_of_range_values(self, field, val, flag):
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.validate(DEFAULT_SCORING._replace(**{field: val}))
        assert excinfo.value.field == flag

    def test_ratio_of_one_is_valid(self):
        config_utils.validate(DEFAULT_SCORING._replace(quality_cutoff=1.0))

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            config_utils.validate(_weights(0.5, 0.5, 0.5, 0.5))


class TestMakeScoring(object):

    def test_unset_overrides_keep_defaults(self):
        overrides = {field: None for field in config_utils.SCORING_FIELDS}
        assert config_utils.make_scoring(overrides) == DEFAULT_SCORING

    def test_overrides_replace_defaults(self):
        scoring = config_utils.make_scoring({"depth_cutoff": 50, "quality_cutoff": 0.9})
        assert scoring.depth_cutoff == 50
        assert scoring.quality_cutoff == 0.9
        assert scoring.expected_mapq == DEFAULT_SCORING.expected_mapq

    def test_yaml_file_then_command_line(self, work_dir):
        config_file = write_file(os.path.join(work_dir, "scoring.yaml"),
                                 "scoring:\n  depth_cutoff: 30\n  expected_baseq: 25\n")
        scoring = config_utils.make_scoring({"depth_cutoff": 40}, config_file)
        assert scoring.depth_cutoff == 40
        assert scoring.expected_baseq == 25

    def test_yaml_unknown_key(self, work_dir):
        config_file = write_file(os.path.join(work_dir, "scoring.yaml"),
                                 "scoring:\n  depth: 30\n")
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.make_scoring({}, config_file)
        assert "depth" in str(excinfo.value)

    def test_yaml_without_scoring_section(self, work_dir):
        config_file = write_file(os.path.join(work_dir, "scoring.yaml"), "other: 1\n")
        assert config_utils.make_scoring(None, config_file) == DEFAULT_SCORING

    def test_yaml_infinite_count(self, work_dir):
        config_file = write_file(os.path.join(work_dir, "scoring.yaml"),
                                 "scoring:\n  depth_cutoff: .inf\n")
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.make_scoring({}, config_file)
        assert excinfo.value.field == "--depth_cutoff"

    def test_non_numeric_value(self):
        with pytest.raises(errors.ConfigError) as excinfo:
            config_utils.make_scoring({"expected_coverage": "high"})
        assert excinfo.value.field == "--expectedCoverage"


def test_scoring_to_args_covers_every_flag():
    args = config_utils.scoring_to_args(DEFAULT_SCORING)
    flags = args[0::2]
    assert flags == ["--%s" % x for x in config_utils.SCORING_FLAGS.values()]
    assert args[args.index("--depth_cutoff") + 1] == "20"
    assert args[args.index("--coverageWeight") + 1] == "0.25"


def test_make_run_config_defaults():
    run_config = config_utils.make_run_config("ref.fa", "reads", "samples.txt",
                                              align_options=["-k", "19"])
    assert run_config.mode == "PE"
    assert run_config.aligner == "bwa"
    assert run_config.align_options == ("-k", "19")
    assert run_config.scoring == DEFAULT_SCORING


def test_get_dirs(run_config):
    dirs = config_utils.get_dirs(run_config)
    assert dirs["mapping"] == os.path.join(run_config.out_dir, "mapping")
    assert dirs["stats"] == os.path.join(run_config.out_dir, "stats")
    assert dirs["reports"] == os.path.join(run_config.out_dir, "reports")


class TestGetProgram(object):

    def test_prefers_tool_path(self, run_config, work_dir):
        tool_dir = os.path.join(work_dir, "tools")
        os.makedirs(tool_dir)
        prog = write_file(os.path.join(tool_dir, "samtools"), "#!/bin/sh\n")
        os.chmod(prog, 0o755)
        run_config = run_config._replace(tool_path=(tool_dir,))
        assert config_utils.get_program("samtools", run_config) == prog
        env = config_utils.get_env(run_config)
        assert env["PATH"].split(os.pathsep)[0] == tool_dir

    def test_missing_program(self, run_config):
        with pytest.raises(config_utils.CmdNotFound):
            config_utils.get_program("assayeval-not-a-program", run_config)

    def test_missing_program_default(self, run_config):
        assert config_utils.get_program("assayeval-not-a-program", run_config, default=None) is None
