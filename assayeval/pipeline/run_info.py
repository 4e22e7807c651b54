"""Retrieve sample information from a tab delimited manifest.

The manifest has a header row holding a SampleID column and a column
whose name contains "Files". Each data row describes one sample; the Files
column lists its read files relative to the input directory, separated by
commas or whitespace. Every other column is kept as a free text attribute.
"""
import collections
import itertools
import os
import re
import subprocess

from assayeval import errors, utils
from assayeval.log import logger
from assayeval.pipeline import config_utils
from assayeval.provenance import do

HEADER_TOKEN = "sampleid"
FILES_TOKEN = "files"
SPREADSHEET_EXTS = (".xls", ".xlsx", ".ods")

SampleRecord = collections.namedtuple("SampleRecord", ["id", "files", "attributes"])
Manifest = collections.namedtuple("Manifest", ["samples", "id_index", "files_index", "columns"])

def clean_name(x):
    """Replace characters outside of letters, digits and underscore.
    """
    return re.sub(r"\W", "_", x.strip())

def get_description(sample):
    """Free text description of a sample, from a column named like Description.
    """
    for key, val in sample.attributes.items():
        if key.lower().startswith("desc") and val:
            return val
    return None

def parse(sample_dir, manifest_file, mode="PE", run_config=None):
    """Parse a manifest into validated, ordered sample records.
    """
    logger.info("Checking sample manifest: %s" % manifest_file)
    if not os.path.exists(manifest_file):
        raise errors.NotFoundError("Sample manifest not found: %s" % manifest_file)
    if manifest_file.lower().endswith(SPREADSHEET_EXTS):
        manifest_file = convert_spreadsheet(manifest_file, run_config)
    with open(manifest_file, encoding="utf-8", errors="replace") as in_handle:
        manifest = _parse_lines(in_handle, sample_dir, mode)
    if not manifest.samples:
        raise errors.ManifestFormatError("No samples found in manifest %s" % manifest_file)
    _check_for_duplicates(manifest.samples)
    logger.info("Found %s samples in %s" % (len(manifest.samples), manifest_file))
    return manifest

def _parse_lines(lines, sample_dir, mode):
    header = None
    samples = []
    for line in lines:
        line = line.rstrip("\r\n")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        if header is None:
            if _is_header(line):
                header = _parse_header(line)
            continue
        samples.append(_parse_sample(line.split("\t"), header, sample_dir, mode))
    if header is None:
        raise errors.ManifestFormatError("Did not find a header line containing SampleID in manifest")
    columns, id_index, files_index = header
    return Manifest(tuple(samples), id_index, files_index, tuple(columns))

def _is_header(line):
    """A header row has a SampleID column, or columns naming both a sample id and files.
    """
    columns = [x.strip().lower() for x in line.split("\t")]
    if HEADER_TOKEN in columns:
        return True
    return (len(columns) > 1 and any(HEADER_TOKEN in x for x in columns)
            and any(FILES_TOKEN in x for x in columns))

def _parse_header(line):
    columns = [x.strip() for x in line.split("\t")]
    id_index = _find_column(columns, lambda x: x.lower() == HEADER_TOKEN)
    if id_index is None:
        id_index = _find_column(columns, lambda x: HEADER_TOKEN in x.lower())
    files_index = _find_column(columns, lambda x: FILES_TOKEN in x.lower())
    if files_index is None:
        raise errors.ManifestFormatError("Manifest header has no Files column: %s" % ", ".join(columns))
    return columns, id_index, files_index

def _find_column(columns, pred):
    for i, name in enumerate(columns):
        if pred(name):
            return i
    return None

def _parse_sample(fields, header, sample_dir, mode):
    columns, id_index, files_index = header
    fields = list(fields) + [""] * (len(columns) - len(fields))
    sample_id = clean_name(fields[id_index])
    if not sample_id:
        raise errors.ManifestFormatError("Manifest row without a sample identifier: %s"
                                         % "\t".join(fields))
    files = [_check_read_file(f, sample_dir) for f in split_files(fields[files_index])]
    if not files:
        raise errors.ManifestFormatError("No read files listed for sample %s" % sample_id)
    if mode == "PE" and len(files) % 2 != 0:
        raise errors.PairingError("Sample %s has %s read files; paired-end mode needs an even number"
                                  % (sample_id, len(files)))
    attributes = collections.OrderedDict()
    for i, name in enumerate(columns):
        if i not in (id_index, files_index):
            attributes[name] = fields[i].strip()
    return SampleRecord(sample_id, tuple(files), attributes)

def split_files(val):
    """Split a Files column value into file names, dropping quote characters.
    """
    val = val.replace('"', "").replace("'", "")
    return [x for x in re.split(r"[,\s]+", val) if x]

def _check_read_file(fname, sample_dir):
    """Resolve a read file against the input directory and check it looks like FASTQ.
    """
    full_path = utils.get_abspath(fname, sample_dir)
    if not os.path.isfile(full_path):
        raise errors.NotFoundError("Read file %s not found in %s" % (fname, sample_dir))
    with utils.open_gzipsafe(full_path) as in_handle:
        first = in_handle.readline()
    if not first.startswith("@"):
        raise errors.FormatTypeError("Read file %s is not in FASTQ format" % full_path)
    return full_path

def _check_for_duplicates(samples):
    """Identify and raise errors on duplicate sample identifiers.
    """
    ids = sorted(x.id for x in samples)
    dups = [key for key, vals in itertools.groupby(ids) if len(list(vals)) > 1]
    if dups:
        raise errors.ManifestFormatError("Duplicate sample identifiers in manifest: %s"
                                         % ", ".join(dups))

def convert_spreadsheet(in_file, run_config):
    """Convert a spreadsheet manifest to tab delimited text with ssconvert.
    """
    out_dir = utils.safe_makedir(run_config.out_dir) if run_config else os.path.dirname(in_file)
    out_file = os.path.join(out_dir, "%s.txt" % os.path.basename(utils.splitext_plus(in_file)[0]))
    ssconvert = config_utils.get_program("ssconvert", run_config)
    cmd = [ssconvert, "--export-type=Gnumeric_stf:stf_assistant",
           "-O", 'separator="\t" format=raw', in_file, out_file]
    try:
        do.run(cmd, "Converting spreadsheet manifest %s" % in_file, [do.file_nonempty(out_file)],
               env=config_utils.get_env(run_config))
    except (OSError, IOError, subprocess.CalledProcessError) as e:
        raise errors.ManifestFormatError("Could not convert spreadsheet manifest %s: %s"
                                         % (in_file, e))
    return out_file
