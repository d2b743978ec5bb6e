"""
device-sense - server-side device detection from HTTP request headers

Classifies a request (primarily its User-Agent) into a device profile:
device type, vendor, model, operating system and browser, each with an
optional version.

Main modules:
- headers: request header normalization and User-Agent synthesis
- matching: pattern templating, match dispatch and rule cascades
- rules: loading and validating the signature tables
- detection: the detection pipeline, device profiles and cache adapters
- cli: the devicectl command line tool
"""

__version__ = "0.3.0"
__author__ = "device-sense contributors"

__all__ = ["__version__", "__author__"]
