import os

import pytest

from assayeval import errors, utils
from assayeval.pipeline import qcsummary, run_info
from assayeval.qc import stats
from tests.conftest import write_file


def _samples(*ids):
    return [run_info.SampleRecord(x, (), {}) for x in ids]


def _write_stats(run_config, sample_id):
    utils.safe_makedir(os.path.join(run_config.out_dir, "stats"))
    stats_file, run_file = stats.get_stats_files(sample_id, run_config)
    write_file(stats_file, "SampleID\tcoverage\tscore\n%s\t0.97\t0.91\n" % sample_id)
    write_file(run_file, "SampleID\treads\n%s\t1000" % sample_id)


def _read(fname):
    with open(fname) as in_handle:
        return in_handle.read()


def test_merges_in_manifest_order(run_config):
    # written in a different order than the manifest lists them
    for sample_id in ["C", "A", "B"]:
        _write_stats(run_config, sample_id)
    merged = qcsummary.aggregate(_samples("A", "B", "C"), run_config)
    lines = _read(merged.mapping_stats).splitlines()
    assert lines == ["SampleID\tcoverage\tscore", "A\t0.97\t0.91", "B\t0.97\t0.91",
                     "C\t0.97\t0.91"]


def test_single_header_and_trailing_newlines(run_config):
    for sample_id in ["A", "B"]:
        _write_stats(run_config, sample_id)
    merged = qcsummary.aggregate(_samples("A", "B"), run_config)
    assert _read(merged.run_stats) == "SampleID\treads\nA\t1000\nB\t1000\n"
    assert merged.mapping_stats == os.path.join(run_config.out_dir, "stats",
                                                "assay.mapping_stats.txt")


def test_rerun_is_identical(run_config):
    for sample_id in ["A", "B"]:
        _write_stats(run_config, sample_id)
    merged = qcsummary.aggregate(_samples("A", "B"), run_config)
    first = _read(merged.mapping_stats)
    qcsummary.aggregate(_samples("A", "B"), run_config)
    assert _read(merged.mapping_stats) == first


def test_missing_sample_output(run_config):
    _write_stats(run_config, "A")
    with pytest.raises(errors.AggregateError) as excinfo:
        qcsummary.aggregate(_samples("A", "B"), run_config)
    assert excinfo.value.sample == "B"
    assert not os.path.exists(qcsummary.get_merged_files(run_config).mapping_stats)


def test_no_samples(run_config):
    with pytest.raises(errors.AggregateError):
        qcsummary.aggregate([], run_config)
