"""
KeyInfo
Copyright (c) 2025

A personal information vault: stores short labeled secrets locally,
groups and searches them, and keeps them behind a biometric or passcode
lock. Data never leaves the device.
"""

__version__ = "1.0"
