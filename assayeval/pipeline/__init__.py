"""High level code for driving the assay evaluation pipeline.

This structures processing steps into the following modules:

  - run_info.py: Parse the sample manifest into validated sample records.
  - config_utils.py: Scoring and run configuration, program lookup.
  - alignment.py: Align each sample's reads to the reference.
  - qcsummary.py: Merge per-sample stats into run level reports.
  - main.py: Command line entry point and stage ordering.
"""
