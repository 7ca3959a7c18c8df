"""wheelie: keep a Helm release present, absent, or purged.

Reconciles a declared release against the cluster and performs at most one
install, upgrade, or delete per invocation.
"""

__version__ = "0.1.0"
