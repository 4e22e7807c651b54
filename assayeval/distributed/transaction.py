"""Write outputs in a scratch directory and move them into place when finished.

An existing output therefore always comes from a completed step, which is what
lets every stage skip samples with outputs already present. An interrupted
move leaves a `.txtmp` marker next to the final file.
"""
import contextlib
import os
import shutil
import tempfile

from assayeval import utils

DEFAULT_TMP = "tx"
# index files written next to an output and moved along with it
COMPANION_EXTS = {".bam": [".bai"]}


def get_tmp_base(run_config=None, base_dir=None):
    """Configured temporary directory, or `tx` inside the output directory.
    """
    if getattr(run_config, "tmp_dir", None):
        return utils.get_abspath(run_config.tmp_dir)
    base_dir = base_dir or getattr(run_config, "out_dir", None) or os.getcwd()
    return utils.get_abspath(os.path.join(base_dir, DEFAULT_TMP))


@contextlib.contextmanager
def tx_tmpdir(run_config=None, base_dir=None, remove=True):
    """Fresh scratch directory for one unit of work, removed on exit.
    """
    tmp_dir = tempfile.mkdtemp(dir=utils.safe_makedir(get_tmp_base(run_config, base_dir)))
    try:
        yield tmp_dir
    finally:
        if remove:
            utils.remove_safe(tmp_dir)


@contextlib.contextmanager
def file_transaction(*config_and_files):
    """Yield scratch paths for outputs, moving them to their final location on success.

    The first argument may be a RunConfig (or None), which picks the
    temporary directory. One output yields a single path, several a tuple.
    Outputs the block did not write are left alone, and nothing is moved if
    the block raises.
    """
    run_config, out_files = _split_args(config_and_files)
    with tx_tmpdir(run_config) as tmp_dir:
        tx_files = [os.path.join(tmp_dir, os.path.basename(f)) for f in out_files]
        yield tx_files[0] if len(tx_files) == 1 else tuple(tx_files)
        for tx_file, out_file in zip(tx_files, out_files):
            if os.path.exists(tx_file):
                _finalize(tx_file, out_file)


def _split_args(args):
    if args and (args[0] is None or hasattr(args[0], "out_dir")):
        run_config, files = args[0], args[1:]
    else:
        run_config, files = None, args
    out_files = []
    for f in files:
        out_files.extend(f if isinstance(f, (list, tuple)) else [f])
    return run_config, [f for f in out_files if f]


def _finalize(tx_file, out_file):
    utils.safe_makedir(os.path.dirname(out_file))
    _move_with_sizecheck(tx_file, out_file)
    for ext in COMPANION_EXTS.get(os.path.splitext(out_file)[1], []):
        if os.path.exists(tx_file + ext):
            _move_with_sizecheck(tx_file + ext, out_file + ext)


def _move_with_sizecheck(tx_file, final_file):
    """Move a finished file, keeping the `.txtmp` marker unless sizes agree.
    """
    marker = final_file + ".txtmp"
    open(marker, "w").close()
    want_size = os.path.getsize(tx_file)
    shutil.move(tx_file, final_file)
    got_size = os.path.getsize(final_file)
    if got_size != want_size:
        raise IOError("Incomplete move of %s to %s: expected %s bytes, found %s"
                      % (tx_file, final_file, want_size, got_size))
    utils.remove_safe(marker)
