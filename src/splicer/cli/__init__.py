"""
CLI package for Splicer.

Command functions are registered on the top-level app in splicer.main.
"""
