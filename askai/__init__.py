"""
askai: send one prompt to an OpenAI-compatible chat endpoint and print the answer.
"""

__version__ = "1.0.0"
