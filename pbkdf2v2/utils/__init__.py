"""Logging and metrics helpers shared by the credential module."""
