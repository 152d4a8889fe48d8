"""Shared utilities for mapmark."""
