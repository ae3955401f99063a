"""This module provides a stat based file watching interface.

A watch set is a list of glob patterns.  Each check expands the patterns,
stats every match and compares the resulting snapshot with the one taken by
the previous check.  Files are fingerprinted by size and modification time
only; contents are never read.  A rewrite that keeps both values goes
unnoticed and a touch without an edit is reported as a change.

Polling is used instead of OS event delivery so the same code behaves the
same way on every platform and on network mounts.
"""
