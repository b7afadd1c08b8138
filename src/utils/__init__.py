"""Utilities package for essentials-tracker application."""
