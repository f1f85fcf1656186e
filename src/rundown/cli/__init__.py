"""Operator CLI for the rundown engine."""
