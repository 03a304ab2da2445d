"""Configure test suite environment"""
import os
import sys

# Make the src namespace and the tests helpers importable from the project root
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)

# Keep tracing and metrics off outside Lambda
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "cycle_calculator")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
