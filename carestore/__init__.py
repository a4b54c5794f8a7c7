"""Clinic record store.

Accounts, patient and doctor profiles, therapy sessions, progress and
notifications kept as JSON documents in a single key-value table, with the
joins and summaries computed in the application layer.
"""
