"""
installcheck - Find packages that cannot be installed from a repository set

Checks every package of a libsolv pool for installability:
- Batched weak solves to discard the easy cases quickly
- One strong solve per remaining package
- Readable problem reports from the solver's rule infos
"""

__version__ = "0.1.0"
__author__ = "Mageia Community"
