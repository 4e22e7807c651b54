#!/usr/bin/env python -Es
"""Run the assay evaluation pipeline on a sample manifest.

Maps reads for every sample in the manifest to the reference, collects
per-sample mapping statistics, merges them in manifest order and renders
the final report.

Usage:
  assayeval_run.py --ref <ref.fa> --indir <read dir> --samples <manifest>
     --outdir output directory
     --cpus number of cores to use (0 for all)
     --mode PE or SE
     --aligner bwa or minimap2
"""
import sys

from assayeval.pipeline.main import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
