# Statistical Engine - Compute Package
"""Procedure registry, plan execution and cooperative cancellation."""
