"""
JDConv command line interface.
"""
