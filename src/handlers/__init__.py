"""
Lambda handlers package for AWS Lambda functions.
"""
from .recalculate import handler

__all__ = ["handler"]
