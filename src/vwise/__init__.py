"""vwise: persistence for workspaces and the panels they own.

Layout:
    vwise.store        # key-value backends (memory, file)
    vwise.cache        # single-flight memoizing map of pending loads
    vwise.marshal      # aggregate <-> JSON-safe record
    vwise.repository   # per-kind repositories + the workspace facade
    vwise.models       # Workspace / Panel aggregates

Records live under "<namespace>_<kind>:<id>"; the id index for each kind is a
JSON array under "<namespace>_<kind>_ids".
"""
