"""Intranet notification service.

Persists per-user notifications, pushes them to connected websocket clients
and keeps the unread counter reconciled with the database.
"""
