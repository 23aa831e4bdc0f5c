"""Definitions shared by the hunt engine and narrator packages."""
