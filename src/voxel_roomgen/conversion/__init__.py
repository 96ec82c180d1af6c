"""
Conversion helpers: vector and rotation math, grayscale image access and
marker export.
"""
