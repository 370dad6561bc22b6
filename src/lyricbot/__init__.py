"""Triage bot for experimental TTML lyric submissions.

This package processes GitHub issues carrying the experimental submission
label, providing:
- Issue-form parameter extraction
- An idempotency gate based on existing pull requests and bot comments
- Download, parsing, smoothing, validation and generation of TTML through
  a pluggable lyric engine
- Decline comments and submission pull requests
"""
