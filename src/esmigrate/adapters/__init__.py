"""Adapters to the search source and the relational sink."""
