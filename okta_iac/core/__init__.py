"""Reconciliation core: context, capability gate, lookup, status and the reconciler."""
