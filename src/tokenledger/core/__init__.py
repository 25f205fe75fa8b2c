"""
Core building blocks shared by the contracts and the runtime.
"""
