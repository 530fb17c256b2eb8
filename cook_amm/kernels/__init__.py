"""
Kernel layer.

`cook_amm/kernels/python/` contains small integer-only pricing kernels. They hold
no state and know nothing about records, plugins or rejections; the guarded
calculators in `cook_amm.core` wrap them.
"""
