"""
Shared pieces for satpaper: data model, exceptions, logging setup, small utilities.
"""
