"""Pipeline functionality to align each sample's reads to the reference.

Alignment outputs act as a cache: a sample with an existing mapping log and
non-empty BAM is not realigned unless the run is forced.
"""
import collections
import os
import shutil
import subprocess

from assayeval import errors, utils
from assayeval.distributed import multi
from assayeval.distributed.transaction import file_transaction, tx_tmpdir
from assayeval.log import logger
from assayeval.ngsalign import bwa, minimap2, postalign
from assayeval.pipeline import config_utils, run_info
from assayeval.provenance import do

_tools = {"bwa": bwa, "minimap2": minimap2}

StageOutput = collections.namedtuple("StageOutput", ["sample", "path", "exists"])

def get_align_files(sample, run_config):
    """BAM and mapping log locations for a sample.
    """
    align_dir = config_utils.get_dirs(run_config)["mapping"]
    return (os.path.join(align_dir, "%s.bam" % sample.id),
            os.path.join(align_dir, "%s.mapping.log" % sample.id))

def is_aligned(sample, run_config):
    bam_file, log_file = get_align_files(sample, run_config)
    return os.path.exists(log_file) and utils.file_exists(bam_file)

def get_rg_info(sample, platform="illumina"):
    rg = r"@RG\tID:{0}\tSM:{0}\tPL:{1}".format(sample.id, platform)
    descr = run_info.get_description(sample)
    if descr:
        rg += r"\tDS:%s" % " ".join(descr.split())
    return rg

def prepare_reference(run_config):
    """Create reference indexes needed by the aligner and stats collection.
    """
    ref_file = run_config.ref_file
    if not os.path.exists(ref_file):
        raise errors.NotFoundError("Reference file not found: %s" % ref_file)
    try:
        if not utils.file_exists(ref_file + ".fai"):
            do.run(postalign.faidx_cl(run_config, ref_file), "samtools faidx",
                   [do.file_nonempty(ref_file + ".fai")], env=config_utils.get_env(run_config))
        _tools[run_config.aligner].index(ref_file, run_config)
    except errors.PipelineError:
        raise
    except (subprocess.CalledProcessError, IOError, OSError) as e:
        raise errors.AlignmentError("Could not index reference %s: %s" % (ref_file, e))
    return ref_file

def _combine_files(in_files, out_base):
    """Concatenate read files into a single input for the aligner.
    """
    if len(in_files) == 1:
        return in_files[0]
    if all(utils.is_gzipped(f) for f in in_files):
        out_file = out_base + ".fq.gz"
        with open(out_file, "wb") as out_handle:
            for f in in_files:
                with open(f, "rb") as in_handle:
                    shutil.copyfileobj(in_handle, out_handle)
    else:
        out_file = out_base + ".fq"
        with open(out_file, "w") as out_handle:
            for f in in_files:
                with utils.open_gzipsafe(f) as in_handle:
                    shutil.copyfileobj(in_handle, out_handle)
    return out_file

def prep_read_files(sample, mode, work_dir):
    """Organize sample files into aligner inputs.

    Paired-end files are listed as consecutive mate pairs; files from multiple
    pairs are combined into one first and one second mate file.
    """
    base = os.path.join(work_dir, sample.id)
    if mode == "PE":
        return (_combine_files(sample.files[0::2], base + "_R1"),
                _combine_files(sample.files[1::2], base + "_R2"))
    return (_combine_files(sample.files, base),)

def align(sample, ref_file, run_config):
    """Align a sample, piping the aligner into samtools sort.
    """
    bam_file, log_file = get_align_files(sample, run_config)
    if not run_config.force and is_aligned(sample, run_config):
        logger.info("Skipping alignment of %s; found %s" % (sample.id, bam_file))
        return StageOutput(sample.id, bam_file, True)
    utils.safe_makedir(os.path.dirname(bam_file))
    cores = multi.get_cores(run_config.cores)
    aligner = _tools[run_config.aligner]
    env = config_utils.get_env(run_config)
    logger.info("Aligning %s with %s" % (sample.id, run_config.aligner))
    open(log_file, "w").close()
    try:
        with tx_tmpdir(run_config) as work_dir:
            read_files = prep_read_files(sample, run_config.mode, work_dir)
            with file_transaction(run_config, bam_file) as tx_bam_file:
                align_cl = aligner.align_cl(read_files, ref_file, get_rg_info(sample, run_config.platform),
                                            run_config, cores)
                sort_cl = postalign.sam_to_sortbam_cl(run_config, tx_bam_file, cores)
                do.run_pipe([align_cl, sort_cl], log_file, "%s alignment: %s" % (run_config.aligner, sample.id),
                            [do.file_nonempty(tx_bam_file)], env=env)
                do.run(postalign.index_cl(run_config, tx_bam_file), "samtools index: %s" % sample.id,
                       env=env, log_file=log_file)
    except errors.PipelineError:
        raise
    except (subprocess.CalledProcessError, IOError, OSError) as e:
        raise errors.AlignmentError("Alignment failed for sample %s: %s" % (sample.id, e))
    if not utils.file_exists(bam_file):
        raise errors.AlignmentError("Alignment of %s did not produce %s" % (sample.id, bam_file))
    return StageOutput(sample.id, bam_file, True)

def align_all(samples, run_config):
    """Align every sample in manifest order, one after another.
    """
    ref_file = prepare_reference(run_config)
    return [align(sample, ref_file, run_config) for sample in samples]
