"""Alignment with minimap2: https://github.com/lh3/minimap2
"""
from assayeval.pipeline import config_utils


def get_preset(read_files):
    """Short read preset for a mate pair, long read preset for single files.
    """
    return "sr" if len(read_files) == 2 else "map-ont"

def index(ref_file, run_config):
    """minimap2 builds indexes on the fly.
    """
    return ref_file

def align_cl(read_files, ref_file, rg_info, run_config, cores=1):
    minimap2 = config_utils.get_program("minimap2", run_config)
    return ([minimap2, "-a", "-x", get_preset(read_files), "-t", str(cores), "-R", rg_info] +
            list(run_config.align_options) + [ref_file] + list(read_files))
