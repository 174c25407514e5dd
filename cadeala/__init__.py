"""
Cadeala Rewards API.

Back-office HTTP API for a multi-business loyalty program on Firebase.
"""

__version__ = "0.4.0"
