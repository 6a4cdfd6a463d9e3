"""
Pool math kernels: checked integer arithmetic, share minting and swap pricing.

Each kernel takes plain ints and returns a frozen result record.
"""
