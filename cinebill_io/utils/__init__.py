"""Shared logging and path helpers for cinebill_io."""
