"""Per-sample quality metrics and report rendering.
"""
