"""Utility functionality for logging.
"""
import os
import sys

import logbook

from assayeval import utils

LOG_NAME = "assayeval"

logger = logbook.Logger(LOG_NAME)
logger_cl = logbook.Logger(LOG_NAME + "-commands")

FORMAT_STR = "[{record.time:%Y-%m-%d %H:%M:%S}] {record.level_name}: {record.message}"

def _is_cl(record, _):
    return record.channel == LOG_NAME + "-commands"

def _not_cl(record, handler):
    return not _is_cl(record, handler)

class CloseableNestedSetup(logbook.NestedSetup):
    def close(self):
        for obj in self.objects:
            if hasattr(obj, "close"):
                obj.close()

def get_log_files(out_dir, prefix):
    return (os.path.join(out_dir, "%s.log" % prefix),
            os.path.join(out_dir, "%s-commands.log" % prefix))

def _create_log_handler(out_dir, prefix, debug=False, quiet=False):
    logbook.set_datetime_format("local")
    level = "DEBUG" if debug else "INFO"
    handlers = [logbook.NullHandler()]
    if out_dir:
        utils.safe_makedir(out_dir)
        log_file, cl_file = get_log_files(out_dir, prefix)
        handlers.append(logbook.FileHandler(log_file, format_string=FORMAT_STR,
                                            level=level, filter=_not_cl, bubble=True))
        handlers.append(logbook.FileHandler(cl_file, format_string=FORMAT_STR,
                                            level="DEBUG", filter=_is_cl, bubble=True))
    if not quiet:
        handlers.append(logbook.StreamHandler(sys.stderr, format_string=FORMAT_STR,
                                              level=level, filter=_not_cl, bubble=True))
    return CloseableNestedSetup(handlers)

def setup_logging(out_dir=None, prefix=LOG_NAME, debug=False, quiet=False):
    """Setup logging to the run log file and console.

    Handlers are pushed for the whole application so worker threads in
    parallel stages write to the same destinations. Returns the handler,
    which callers close when finished.
    """
    handler = _create_log_handler(out_dir, prefix, debug, quiet)
    handler.push_application()
    return handler

def teardown_logging(handler):
    if handler is not None:
        handler.pop_application()
        handler.close()
