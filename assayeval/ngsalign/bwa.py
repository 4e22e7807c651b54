"""Next-gen alignments with BWA (http://bio-bwa.sourceforge.net/)
"""
from assayeval import utils
from assayeval.log import logger
from assayeval.pipeline import config_utils
from assayeval.provenance import do

INDEX_EXTS = [".amb", ".ann", ".bwt", ".pac", ".sa"]

def index(ref_file, run_config):
    """Build the BWA index next to the reference unless already present.
    """
    if all(utils.file_exists(ref_file + ext) for ext in INDEX_EXTS):
        return ref_file
    bwa = config_utils.get_program("bwa", run_config)
    logger.info("Building bwa index for %s" % ref_file)
    do.run([bwa, "index", ref_file], "bwa index", [do.file_nonempty(ref_file + ".bwt")],
           env=config_utils.get_env(run_config))
    return ref_file

def align_cl(read_files, ref_file, rg_info, run_config, cores=1):
    """bwa mem command line; paired-end runs pass the two mate files.
    """
    bwa = config_utils.get_program("bwa", run_config)
    if run_config.mode == "PE":
        assert len(read_files) == 2, read_files
    else:
        assert len(read_files) == 1, read_files
    return ([bwa, "mem", "-M", "-t", str(cores), "-R", rg_info] +
            list(run_config.align_options) + [ref_file] + list(read_files))
