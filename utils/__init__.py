"""
Utilities package for the Deadlock Snapshot Detector.
Contains the snapshot loader and logger.
"""
