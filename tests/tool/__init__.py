"""Tests for flux-reconcile tools."""
