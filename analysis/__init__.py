"""
Analysis package for the Deadlock Snapshot Detector.
Contains batch analysis over many snapshot files.
"""
