"""Haunted hunt narrator package.

This package provides the speech side of the hunt, including:

- Voice discovery and preference-ordered voice selection
- Clip playback via pygame with volume ceiling and rate control
- A narrator that plays pre-rendered lines, one utterance at a time
"""
