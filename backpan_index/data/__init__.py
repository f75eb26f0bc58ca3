"""
Configuration and cache bookkeeping for the local BackPAN index.

This package is responsible for:
* Determining the cache directory (via config, env var + sensible default).
* Loading configuration from JSON/YAML files.
* Deciding when the downloaded index or the database is stale.
"""
