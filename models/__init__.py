"""
Models package for the Deadlock Snapshot Detector.
Contains the immutable Snapshot data model.
"""
