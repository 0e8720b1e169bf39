"""Notification dispatch and delivery tracking service."""
