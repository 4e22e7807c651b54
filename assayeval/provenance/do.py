"""Centralize running of external commands, providing logging and tracking.

Commands are always argument vectors; nothing is passed through a shell.
Piped commands are connected process to process by `run_pipe`.
"""
import collections
import contextlib
import os
import subprocess

from assayeval import utils
from assayeval.log import logger, logger_cl

TAIL_LINES = 100

CmdResult = collections.namedtuple("CmdResult", ["cmd", "returncode", "output"])

def run(cmd, descr=None, checks=None, log_error=True, check=True, env=None, cwd=None,
        log_file=None):
    """Run the provided command, logging details and checking for errors.

    Merged stdout/stderr goes to the debug log (and `log_file` if given); the
    last lines are kept on the returned CmdResult. With `check`, non-zero exits
    raise CalledProcessError carrying that tail.
    """
    cmd = _normalize_cmd_args(cmd)
    if descr:
        logger.debug(descr)
    logger_cl.debug(" ".join(cmd))
    try:
        result = _do_run(cmd, env=env, cwd=cwd, log_file=log_file)
        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(result.returncode, _error_msg(cmd, result.output))
        if check and checks:
            _run_checks(checks)
    except (subprocess.CalledProcessError, IOError, OSError):
        if log_error:
            logger.exception("Failed running: %s" % (descr or cmd[0]))
        raise
    return result

def _normalize_cmd_args(cmd):
    if isinstance(cmd, str):
        raise ValueError("Commands must be argument lists, not strings: %s" % cmd)
    return [str(x) for x in cmd]

def _error_msg(cmd, output):
    return " ".join(cmd) + "\n" + "".join(output)

def _do_run(cmd, env=None, cwd=None, log_file=None):
    """Perform running, streaming output, and always reaping the child.
    """
    debug_stdout = collections.deque(maxlen=TAIL_LINES)
    with contextlib.ExitStack() as stack:
        out_handle = stack.enter_context(open(log_file, "a")) if log_file else None
        s = stack.enter_context(subprocess.Popen(cmd, stdout=subprocess.PIPE,
                                                 stderr=subprocess.STDOUT, close_fds=True,
                                                 env=env, cwd=cwd))
        try:
            for line in s.stdout:
                line = line.decode("utf-8", errors="replace")
                debug_stdout.append(line)
                if out_handle:
                    out_handle.write(line)
                if line.rstrip():
                    logger.debug(line.rstrip())
        except BaseException:
            s.kill()
            raise
        exitcode = s.wait()
    return CmdResult(cmd, exitcode, list(debug_stdout))

def run_pipe(cmds, log_file, descr=None, checks=None, env=None):
    """Run commands connected stdout to stdin, sending stderr to `log_file`.

    Every child is killed if the parent fails while they are running and all
    are waited on before returning. Raises CalledProcessError naming the first
    command with a non-zero exit status.
    """
    cmds = [_normalize_cmd_args(c) for c in cmds]
    if descr:
        logger.debug(descr)
    logger_cl.debug(" | ".join(" ".join(c) for c in cmds))
    procs = []
    with contextlib.ExitStack() as stack:
        log_handle = stack.enter_context(open(log_file, "a"))
        try:
            stdin = None
            for i, cmd in enumerate(cmds):
                stdout = subprocess.PIPE if i < len(cmds) - 1 else subprocess.DEVNULL
                p = stack.enter_context(subprocess.Popen(cmd, stdin=stdin, stdout=stdout,
                                                         stderr=log_handle, close_fds=True,
                                                         env=env))
                if stdin is not None:
                    # the downstream process owns the read end now
                    stdin.close()
                stdin = p.stdout
                procs.append(p)
            returncodes = [p.wait() for p in procs]
        except BaseException:
            for p in procs:
                if p.poll() is None:
                    p.kill()
            raise
    for cmd, code in zip(cmds, returncodes):
        if code != 0:
            raise subprocess.CalledProcessError(code, _error_msg(cmd, _tail(log_file)))
    if checks:
        _run_checks(checks)
    return returncodes

def _tail(fname, n=TAIL_LINES):
    if not os.path.exists(fname):
        return []
    with open(fname, errors="replace") as in_handle:
        return list(collections.deque(in_handle, maxlen=n))

def _run_checks(checks):
    for check in checks:
        if not check():
            raise IOError("External command failed")

# checks for validating run completed successfully

def file_nonempty(target_file):
    def check():
        ok = utils.file_exists(target_file)
        if not ok:
            logger.info("Did not find non-empty output file {0}".format(target_file))
        return ok
    return check

def file_exists(target_file):
    def check():
        ok = os.path.exists(target_file)
        if not ok:
            logger.info("Did not find output file {0}".format(target_file))
        return ok
    return check
