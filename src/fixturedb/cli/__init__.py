"""Command line interface for FixtureDB."""
