"""State/store layer.

This package owns the durable per-meter state used to discard interval
readings already reported by a previous run, and the policy deciding which
readings are new.
"""
