"""
Voxel shape generation: primitives, tolerance-based voxel sets and
composition.
"""
