"""Perform streaming post-alignment preparation -- sorting and indexing.
"""
from assayeval import utils
from assayeval.pipeline import config_utils


def sam_to_sortbam_cl(run_config, tx_out_file, cores=1):
    """Convert SAM on standard input to sorted BAM output.
    """
    samtools = config_utils.get_program("samtools", run_config)
    tmp_file = "%s-sorttmp" % utils.splitext_plus(tx_out_file)[0]
    return [samtools, "sort", "-@", str(cores), "-T", tmp_file, "-o", tx_out_file, "-"]

def index_cl(run_config, bam_file):
    samtools = config_utils.get_program("samtools", run_config)
    return [samtools, "index", bam_file]

def faidx_cl(run_config, ref_file):
    samtools = config_utils.get_program("samtools", run_config)
    return [samtools, "faidx", ref_file]
