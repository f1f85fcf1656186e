"""Command groups for the rundown CLI."""
