"""Reminder lifecycle: persisted records plus their scheduled notifications.

A reminder lives in two places that share no transaction: a row in the local
SQLite store and a one-shot notification armed on the host under the tag
``str(reminder.id)``. The service keeps the two in step (insert then arm,
cancel then delete) and reports, rather than hides, the cases where they drift.
"""
