"""Run steps in parallel and manage transactional output files.
"""
