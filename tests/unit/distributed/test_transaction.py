import os

import pytest

from assayeval.distributed import transaction
from assayeval.distributed.transaction import file_transaction, tx_tmpdir
from tests.conftest import write_file


class TestTxTmpdir(object):

    def test_uses_output_directory(self, run_config):
        with tx_tmpdir(run_config) as tmp_dir:
            assert os.path.isdir(tmp_dir)
            assert os.path.dirname(tmp_dir) == os.path.join(run_config.out_dir, "tx")
        assert not os.path.exists(tmp_dir)

    def test_uses_configured_tmpdir(self, run_config, work_dir):
        scratch = os.path.join(work_dir, "scratch")
        with tx_tmpdir(run_config._replace(tmp_dir=scratch)) as tmp_dir:
            assert os.path.dirname(tmp_dir) == scratch

    def test_without_config_uses_cwd(self, work_dir):
        with tx_tmpdir(None) as tmp_dir:
            assert os.path.dirname(tmp_dir) == os.path.join(os.getcwd(), "tx")

    def test_keep(self, run_config):
        with tx_tmpdir(run_config, remove=False) as tmp_dir:
            pass
        assert os.path.isdir(tmp_dir)


class TestFileTransaction(object):

    def test_moves_output_on_success(self, run_config):
        out_file = os.path.join(run_config.out_dir, "stats", "a.txt")
        with file_transaction(run_config, out_file) as tx_out_file:
            assert tx_out_file != out_file
            write_file(tx_out_file, "done\n")
            assert not os.path.exists(out_file)
        with open(out_file) as in_handle:
            assert in_handle.read() == "done\n"
        assert not os.path.exists(out_file + ".txtmp")

    def test_leaves_nothing_on_failure(self, run_config):
        out_file = os.path.join(run_config.out_dir, "a.txt")
        with pytest.raises(RuntimeError):
            with file_transaction(run_config, out_file) as tx_out_file:
                write_file(tx_out_file, "partial")
                raise RuntimeError("interrupted")
        assert not os.path.exists(out_file)

    def test_multiple_files(self, run_config):
        out_files = [os.path.join(run_config.out_dir, x) for x in ["a.txt", "b.txt"]]
        with file_transaction(run_config, out_files) as (tx_a, tx_b):
            write_file(tx_a, "a")
            write_file(tx_b, "b")
        assert all(os.path.exists(x) for x in out_files)

    def test_moves_bam_index(self, run_config):
        bam_file = os.path.join(run_config.out_dir, "mapping", "A.bam")
        with file_transaction(run_config, bam_file) as tx_bam_file:
            write_file(tx_bam_file, "bam")
            write_file(tx_bam_file + ".bai", "index")
        assert os.path.exists(bam_file + ".bai")

    def test_without_config(self, work_dir):
        out_file = os.path.join(work_dir, "a.txt")
        with file_transaction(out_file) as tx_out_file:
            write_file(tx_out_file, "a")
        assert os.path.exists(out_file)


def test_split_args_recognizes_run_config(run_config):
    assert transaction._split_args((run_config, "a.txt")) == (run_config, ["a.txt"])
    assert transaction._split_args(("a.txt", ["b.txt", None])) == (None, ["a.txt", "b.txt"])
    assert transaction._split_args((None, "a.txt")) == (None, ["a.txt"])


def test_sizecheck_flags_failed_transfer(mocker, work_dir):
    tx_file = write_file(os.path.join(work_dir, "tx.txt"), "abc")
    final_file = os.path.join(work_dir, "final.txt")
    mocker.patch("assayeval.distributed.transaction.os.path.getsize", side_effect=[3, 1])
    with pytest.raises(IOError):
        transaction._move_with_sizecheck(tx_file, final_file)
    assert os.path.exists(final_file + ".txtmp")


def test_tmp_base(run_config, work_dir):
    assert transaction.get_tmp_base(run_config) == os.path.join(run_config.out_dir, "tx")
    scratch = os.path.join(work_dir, "scratch")
    assert transaction.get_tmp_base(run_config._replace(tmp_dir=scratch)) == scratch
