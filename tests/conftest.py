"""Pytest fixtures and test helper functions"""
import gzip
import os
import shutil
import tempfile

import pytest

from assayeval.pipeline import config_utils

FASTQ_RECORD = "@read{0}\nACGTACGTAC\n+\nIIIIIIIIII\n"


def pytest_addoption(parser):
    parser.addoption('--keep-test-dir', action='store_true', default=False,
                     help='Preserve test output directory after each test')


@pytest.fixture
def work_dir(pytestconfig):
    """Provide and manage output directory for tests"""
    test_output_dir = tempfile.mkdtemp(prefix="assayeval_")
    original_dir = os.getcwd()
    os.chdir(test_output_dir)
    yield test_output_dir
    os.chdir(original_dir)
    if not pytestconfig.getoption('--keep-test-dir'):
        shutil.rmtree(test_output_dir)


def write_fastq(fname, n=2):
    opener = gzip.open if fname.endswith(".gz") else open
    with opener(fname, "wt") as out_handle:
        for i in range(n):
            out_handle.write(FASTQ_RECORD.format(i))
    return fname


def write_file(fname, content):
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    return fname


@pytest.fixture
def sample_dir(work_dir):
    dname = os.path.join(work_dir, "reads")
    os.makedirs(dname)
    return dname


@pytest.fixture
def run_config(work_dir, sample_dir):
    """RunConfig writing into the test directory, with ordinary defaults."""
    return config_utils.make_run_config(
        os.path.join(work_dir, "ref.fa"), sample_dir, os.path.join(work_dir, "samples.txt"),
        out_dir=os.path.join(work_dir, "out"))
