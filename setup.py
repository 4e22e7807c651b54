#!/usr/bin/env python

"""Setup file and install script for the assay evaluation pipeline"""

import os
import subprocess

import setuptools

VERSION = '0.3.0'

# add version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (subprocess.SubprocessError, OSError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'assayeval', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

# external programs (bwa, minimap2, samtools, the stats collector and report
# renderer) are installed separately and found on PATH or --toolpath
setuptools.setup(name='assayeval',
                 version=VERSION,
                 description='Assay performance evaluation from mapped sequencing reads',
                 packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
                 scripts=['scripts/assayeval_run.py'],
                 entry_points={'console_scripts': ['assayeval = assayeval.pipeline.main:main']},
                 python_requires='>=3.6',
                 install_requires=['Logbook', 'toolz', 'PyYAML', 'joblib'],
                 extras_require={'test': ['pytest', 'pytest-mock', 'mock']})
