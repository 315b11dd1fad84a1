"""Local reminders with scheduled notifications."""
