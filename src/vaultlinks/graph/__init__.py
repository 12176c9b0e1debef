"""Wiki-link graph of a Markdown vault.

Links are extracted per note, resolved by exact title against the loaded
notes, and kept in an in-memory bidirectional graph rebuilt on every run.
"""
