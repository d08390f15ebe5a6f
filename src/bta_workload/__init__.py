"""
BTA workload calculator: weekly academic workload against minimum targets,
priced from a versioned activity catalog.
"""

__version__ = "0.1.0"
