"""Shared types used across the domain, engine and CLI layers."""
