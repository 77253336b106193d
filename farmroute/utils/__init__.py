"""
Utility functions module.

Time Semantics:
- Session timestamps are epoch milliseconds, matching exported documents
- Elapsed time is always computed against the session start time
"""
