"""Helpful utilities for building analysis pipelines.
"""
import gzip
import os
import shutil
import time


def safe_makedir(dname):
    """Make a directory if it doesn't exist, handling concurrent race conditions.
    """
    if not dname:
        return dname
    num_tries = 0
    max_tries = 5
    while not os.path.exists(dname):
        # we could get an error here if multiple workers are creating
        # the directory at the same time. Grr, concurrency.
        try:
            os.makedirs(dname)
        except OSError:
            if num_tries > max_tries:
                raise
            num_tries += 1
            time.sleep(2)
    return dname

def file_exists(fname):
    """Check if a file exists and is non-empty.
    """
    try:
        return bool(fname) and os.path.exists(fname) and os.path.getsize(fname) > 0
    except OSError:
        return False

def splitext_plus(f):
    """Split on file extensions, allowing for zipped extensions.
    """
    base, ext = os.path.splitext(f)
    if ext in [".gz", ".bz2", ".zip"]:
        base, ext2 = os.path.splitext(base)
        ext = ext2 + ext
    return base, ext

def remove_safe(f):
    try:
        if os.path.isdir(f):
            shutil.rmtree(f)
        else:
            os.remove(f)
    except OSError:
        pass

def is_gzipped(fname):
    _, ext = os.path.splitext(fname)
    return ext in [".gz", "gzip"]

def open_gzipsafe(f, is_gz=False):
    if is_gzipped(f) or is_gz:
        return gzip.open(f, "rt", encoding="utf-8", errors="ignore")
    else:
        return open(f, encoding="utf-8", errors="ignore")

def get_abspath(path, pardir=None):
    if pardir is None:
        pardir = os.getcwd()
    path = os.path.expandvars(os.path.expanduser(path))
    return os.path.normpath(os.path.join(pardir, path))

def which(program, search_path=None):
    """Returns the path to an executable or None if it can't be found.

    Directories in `search_path` are tried before the ones on PATH.
    """
    def is_exe(fpath):
        return os.path.isfile(fpath) and os.access(fpath, os.X_OK)

    fpath, _ = os.path.split(program)
    if fpath:
        if is_exe(program):
            return os.path.abspath(program)
        return None
    dirs = list(search_path or []) + os.environ.get("PATH", "").split(os.pathsep)
    for path in dirs:
        if not path:
            continue
        exe_file = os.path.join(path, program)
        if is_exe(exe_file):
            return exe_file
    return None
