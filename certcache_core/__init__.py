"""
certcache-core
==============
Local, persistent fetch-through cache for enrollment certificates.

Provides:
- Identity encoding helpers
- SQLite-backed certificate store with a guarded process-wide lifecycle
- Pluggable fetch collaborators (HTTP default)
"""
