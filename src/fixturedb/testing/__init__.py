"""pytest integration for FixtureDB."""
