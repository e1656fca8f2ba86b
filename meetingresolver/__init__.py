"""
meetingresolver - find meeting times a quorum of attendees can make.
"""

__version__ = "0.1.0"
