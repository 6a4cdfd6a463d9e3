"""
Kernel layer.

`cpamm/kernels/python/` holds the integer-only math the core operations are
built from. Kernels know nothing about pool records or custody.
"""
