"""Result persistence for long-running processing jobs.

Stores request/response payloads by id, spills large outputs to disk and
evicts records older than a configured age.
"""

__version__ = "0.1.0"
