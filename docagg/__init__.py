"""Aggregate markdown documentation from several repositories into one tree."""
