"""
Tag Syncer - Release-driven file sync from a source repo to target repos.

This package mirrors a configured list of files from a tagged source
repository into one or more target repositories, commits them with a
changelog generated from the source history, and keeps the target's tags
in line with the source before force-pushing.
"""

__version__ = "1.0.0"
