"""Bukialo CRM automation service."""
