"""
Algorithms package for the Deadlock Snapshot Detector.
Contains the Work/Finish deadlock detection implementation.
"""
