"""Clinic Copilot health-tracking backend."""
