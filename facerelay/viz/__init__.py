"""Preview rendering."""
