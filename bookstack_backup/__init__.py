# bookstack_backup/__init__.py
"""
bookstack_backup package initializer.
Defines package version; the CLI lives in :mod:`bookstack_backup.cli`.
"""
__version__ = "0.1.0"
