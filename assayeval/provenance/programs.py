"""Record program versions used for analysis, enabling reproduction of results.
"""
import os

from assayeval.pipeline import version


def get_program_file(run_config):
    return os.path.join(run_config.out_dir, "%s.programs.txt" % run_config.prefix)

def write_versions(versions, run_config):
    """Write CSV file with versions used in the analysis pipeline.
    """
    out_file = get_program_file(run_config)
    out = [("assayeval", ("%s-%s" % (version.__version__, version.__git_revision__)
                          if version.__git_revision__ else version.__version__))]
    out += sorted(versions.items())
    with open(out_file, "w") as out_handle:
        for program, v in out:
            out_handle.write("{0},{1}\n".format(program, v))
    return out_file
