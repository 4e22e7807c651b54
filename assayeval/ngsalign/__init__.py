"""Wrappers around external read aligners.
"""
