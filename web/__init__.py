"""
HTTP surface for the CMA engine.
"""
